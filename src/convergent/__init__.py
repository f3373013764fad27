"""convergent - declarative, idempotent resources that converge system state."""

from . import resources as resources
from .actions import Action as Action
from .actions import Step as Step
from .actions import action as action
from .config import RunConfig as RunConfig
from .context import Context as Context
from .errors import CommandError as CommandError
from .errors import ConvergeError as ConvergeError
from .errors import GuardEvaluationError as GuardEvaluationError
from .errors import PropertyCycleError as PropertyCycleError
from .errors import PropertyFrozen as PropertyFrozen
from .errors import TypeMismatch as TypeMismatch
from .errors import UnknownAction as UnknownAction
from .errors import UnknownProperty as UnknownProperty
from .errors import UnknownResource as UnknownResource
from .executor import Executor as Executor
from .executor import RunOutcome as RunOutcome
from .facts import Facts as Facts
from .guards import NotIf as NotIf
from .guards import OnlyIf as OnlyIf
from .guards import OutputEquals as OutputEquals
from .notifications import Notification as Notification
from .notifications import Timing as Timing
from .notifications import notify as notify
from .properties import Property as Property
from .resource import Resource as Resource
from .resource import resource as resource
from .runner import Run as Run
from .shell import CommandResult as CommandResult
from .shell import Shell as Shell
