"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: requests/BeautifulSoup providers,
LangChain LLMs, SQLite storage. Depends on domain/ only (implements ports).
Never imported by application/.
"""
