"""コマンドゲート（入力検証・レート制限）。"""
from __future__ import annotations

from scanledger.config import AllowedDirectories
from scanledger.gate.rate_limit import RateLimit, RateLimiter
from scanledger.gate.schemas import build_schemas
from scanledger.gate.validator import CommandGate, FieldRule


def default_gate(dirs: AllowedDirectories) -> CommandGate:
    return CommandGate(build_schemas(dirs))


__all__ = ["CommandGate", "FieldRule", "RateLimit", "RateLimiter", "build_schemas", "default_gate"]
