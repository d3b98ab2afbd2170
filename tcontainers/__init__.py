"""Wait strategies, a reaper client and helpers for throwaway test containers."""

__version__ = "0.1.0"