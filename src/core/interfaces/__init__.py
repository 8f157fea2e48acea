"""Interfaces/abstracciones del Core.

Contratos (Protocol) que implementan los adaptadores concretos; el Core
depende de abstracciones, no de httpx.
"""
