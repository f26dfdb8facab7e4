"""
Application Support

Settings and process setup shared by the command line tools.

Key Components:
- config.py: Settings loaded from the environment, resolver construction
- cli.py: Logging and error reporting setup
"""
