"""API — camada de borda.

Responsabilidades:
- Expor endpoints HTTP de sincronização, eventos e compartilhamento
- Conversar com o servidor do provider de calendário
- Converter erros de domínio em respostas HTTP

Subpastas:
- connectors/: adapter HTTP do provider (auth, eventos, criação)
- routes/: endpoints HTTP (calendário, health)

NÃO PODE conter: FSM, regras de merge, estado de sessão.
"""
