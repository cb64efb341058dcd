"""
AIFLOW writes commit messages, branch names and merge request text from diffs
"""
__version__ = "1.0.0"
