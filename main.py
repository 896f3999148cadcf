"""
Convenience entrypoint for the conversation session CLI.

Allows running `python main.py` in addition to `python -m conversation_session`.
"""

from conversation_session.cli import main


if __name__ == "__main__":
    main()
