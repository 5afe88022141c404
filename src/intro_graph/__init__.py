"""IntroGraph: warm-introduction path finding and contact deduplication."""

__version__ = "0.1.0"
