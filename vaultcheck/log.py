"""Console report for a vault check run."""

from colorama import Fore, Style


RULE = "-" * 73


def _emit(color, msg, indent=0):
    print(f"{'  ' * indent}{color}{msg}{Style.RESET_ALL}")


def section(title):
    print()
    _emit(Fore.CYAN, RULE)
    _emit(Fore.CYAN, title)


def step(msg):
    _emit(Fore.LIGHTBLUE_EX, f"▸ {msg}")


def field(label, value, indent=1):
    _emit("", f"{label}: {value}", indent)


def detail(msg):
    _emit(Style.DIM, msg, indent=2)


def success(msg):
    _emit(Fore.GREEN, f"✔ {msg}")


def error(msg):
    _emit(Fore.RED, msg)
