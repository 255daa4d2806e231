from . import callables, events

__all__ = ["callables", "events"]
