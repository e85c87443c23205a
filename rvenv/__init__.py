"""Create Python virtual environments and start model servers inside them."""

__version__ = "0.1.0"
__all__ = ["venv", "cli", "activate"]