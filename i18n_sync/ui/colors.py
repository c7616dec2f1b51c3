"""
Shared color definitions for terminal output.
"""


class Colors:
    RESET = "\x1b[0m"
    BOLD = "\x1b[1m"
    DIM = "\x1b[2m"
    GREEN = "\x1b[38;2;74;222;128m"
    YELLOW = "\x1b[38;2;250;204;21m"
    RED = "\x1b[38;2;248;113;113m"
    INDIGO = "\x1b[38;2;99;102;241m"
    MUTED = "\x1b[38;2;148;163;184m"


class NoColors:
    """Drop-in for Colors when output is not a terminal."""
    RESET = BOLD = DIM = GREEN = YELLOW = RED = INDIGO = MUTED = ""
