"""Poll engine — registry, prober, classifier, retries, store, scheduler."""

from .classifier import classify
from .models import PollOutcome, StatusRecord, Target, Verdict
from .prober import EndpointProber
from .registry import RegistryError, TargetRegistry
from .retry import RetryController
from .scheduler import PollScheduler
from .store import StatusStore
