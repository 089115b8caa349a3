"""Cross-chain bridge relayer core: messages, routing, deposit parsing, voting, stores, configuration and keystores."""

__version__ = "0.1.0"