"""Domain repositories: one snapshot of Laravel metadata per domain."""

from larasense.repositories.base import Repository, Snapshot
from larasense.repositories.blade_components import BladeComponentRepository
from larasense.repositories.configs import ConfigRepository
from larasense.repositories.env import EnvRepository
from larasense.repositories.gates import GateRepository
from larasense.repositories.inertia import InertiaRepository
from larasense.repositories.livewire import LivewireRepository
from larasense.repositories.middleware import MiddlewareRepository
from larasense.repositories.models import ModelRepository
from larasense.repositories.routes import RouteRepository
from larasense.repositories.translations import TranslationRepository
from larasense.repositories.validation import ValidationRepository
from larasense.repositories.views import ViewRepository

__all__ = [
    "BladeComponentRepository",
    "ConfigRepository",
    "EnvRepository",
    "GateRepository",
    "InertiaRepository",
    "LivewireRepository",
    "MiddlewareRepository",
    "ModelRepository",
    "Repository",
    "RouteRepository",
    "Snapshot",
    "TranslationRepository",
    "ValidationRepository",
    "ViewRepository",
]
