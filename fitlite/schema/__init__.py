"""Fitlite schema definitions."""

from .parser import *
from .registry import build_registry as build_registry
from .registry import load_registry as load_registry
from .types import *
