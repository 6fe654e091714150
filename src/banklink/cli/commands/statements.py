"""Bank statement commands for BankLink CLI."""

import logging
from pathlib import Path

import typer

from ._common import ProviderArgument, echo_json, run_with_provider

app = typer.Typer(help="List and download bank statements")
logger = logging.getLogger(__name__)


@app.command("list")
def list_statements(
    provider: str = ProviderArgument,
    access_token: str = typer.Option(..., "--access-token"),
    account_id: str = typer.Option(..., "--account-id"),
    user_id: str = typer.Option(..., "--user-id"),
    team_id: str = typer.Option(..., "--team-id"),
) -> None:
    """List statements available for an account."""
    response = run_with_provider(
        provider,
        lambda p: p.get_statements(
            access_token=access_token,
            account_id=account_id,
            user_id=user_id,
            team_id=team_id,
        ),
    )
    echo_json(response)


@app.command("download")
def download_statement(
    provider: str = ProviderArgument,
    statement_id: str = typer.Option(..., "--statement-id"),
    access_token: str = typer.Option(..., "--access-token"),
    account_id: str = typer.Option(..., "--account-id"),
    user_id: str = typer.Option(..., "--user-id"),
    team_id: str = typer.Option(..., "--team-id"),
    output_dir: Path = typer.Option(
        Path("."), "--output-dir", "-o", help="Directory to write the PDF to"
    ),
) -> None:
    """Download a statement PDF."""
    pdf = run_with_provider(
        provider,
        lambda p: p.get_statement_pdf(
            access_token=access_token,
            statement_id=statement_id,
            account_id=account_id,
            user_id=user_id,
            team_id=team_id,
        ),
    )
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / Path(pdf.filename).name
    path.write_bytes(pdf.pdf)
    logger.info(f"📁 Saved statement to {path}")
    echo_json({"path": str(path), "bytes": len(pdf.pdf)})
