"""Endpoints do calendário: autorização, sync, eventos e compartilhamentos."""
