"""App — coração do sistema: sessão de sync, espelho e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: eventos, horários normalizados e modelos de compartilhamento
- services/: normalização, merge, rótulos, espelho e visão compartilhada
- sessions/: SyncSession e poller
- infra/: implementações concretas de IO (stores, fluxo de autorização)
- protocols/: contratos/interfaces
- observability/: correlation_id e métricas via logs estruturados

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
