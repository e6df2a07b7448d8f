"""
CommentGuard - comment moderation and user trust scoring.

This package provides the moderation engine of a travel-guide site:
- Bad word censoring with admin-managed word lists
- Spam, advertisement and link heuristics
- Comment rate limiting and suspicious behavior auditing
- A trust score ledger with escalating temporary bans
- The comment lifecycle (create, edit, delete, like, report)
"""

__version__ = "1.0.0"
__all__ = ["main", "__version__"]


def main() -> None:
    """Entry point for the CommentGuard CLI."""
    from commentguard.cli import main as cli_main

    cli_main()
