"""nema — анализатор отчётов прогонов Postman/newman."""

__version__ = "0.3.0"
