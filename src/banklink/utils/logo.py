"""Institution logo resolution."""

LOGO_BASE_URL = "https://cdn.banklink.dev/institutions"


def get_logo_url(institution_id: str | None, ext: str = "jpg") -> str | None:
    """Build the logo URL for an institution.

    The URL is derived from the id alone, so the same institution always
    resolves to the same logo and no network call is made.

    Args:
        institution_id: Vendor institution identifier
        ext: Image file extension

    Returns:
        str | None: Logo URL, or None when the id is empty
    """
    if not institution_id:
        return None
    return f"{LOGO_BASE_URL}/{institution_id}.{ext}"
