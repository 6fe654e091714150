"""Small pure helpers shared by the vendor transforms and adapters."""
