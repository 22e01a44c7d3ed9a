"""Schemas for the root and info endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class Welcome(BaseModel):
    message: str
    timestamp: str
    environment: str
    version: str


class MemoryUsage(BaseModel):
    rss: int
    vms: int


class CpuUsage(BaseModel):
    user: int
    system: int


class AppInfo(BaseModel):
    application: str
    version: str
    environment: str
    python_version: str
    pid: int
    uptime: float
    memory: MemoryUsage
    cpu: CpuUsage
