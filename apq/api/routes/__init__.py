from . import pricing, quotes, renders, worker

__all__ = ["pricing", "quotes", "renders", "worker"]
