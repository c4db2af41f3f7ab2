"""QIF importer with a FIFO lot ledger and point-in-time holdings."""

__version__ = "0.1.0"

_LAZY = {
    "main": ("qifledger.cli.main", "main"),
    "parse": ("qifledger.qif", "parse"),
}


# Resolved on first access so importing the package does not pull in click
def __getattr__(name):
    if name in _LAZY:
        from importlib import import_module

        module_name, attribute = _LAZY[name]
        return getattr(import_module(module_name), attribute)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
