from .toast import Toast, Notifier

__all__ = ["Toast", "Notifier"]
