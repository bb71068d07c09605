__version__ = "0.1.0"

__all__ = [
    "__version__",
    "baseline",
    "budgets",
    "cli",
    "collectors",
    "core",
    "engine",
    "errors",
    "exit_codes",
    "models",
    "reporting",
]
