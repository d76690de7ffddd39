"""Lifecycle module for reviewer actions on matches and recommendations."""

from pricematch.lifecycle.lifecycle_manager import LifecycleManager

__all__ = ["LifecycleManager"]
