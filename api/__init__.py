"""HTTP surface for the interview analysis service."""
