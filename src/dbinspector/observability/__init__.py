# -*- coding: utf-8 -*-
"""Observability: Prometheus metrics"""

from .metrics import setup_metrics

__all__ = ["setup_metrics"]
