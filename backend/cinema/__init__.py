"""Cinema booking API: seat locking and booking confirmation over a movie catalog."""

__version__ = "1.0.0"
