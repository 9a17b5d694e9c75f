"""Connectors — adapters de borda para APIs externas.

Estrutura:
- provider/: servidor do provider de calendário (auth, eventos, criação)
"""

__all__: list[str] = []
