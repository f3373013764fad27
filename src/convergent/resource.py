"""Resource base class and resource type registration."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from .actions import Action, ActionDef, action
from .errors import PropertyCycleError, PropertyFrozen, UnknownAction, UnknownProperty
from .notifications import Notification, Timing, notify
from .properties import Property

if TYPE_CHECKING:
    from .context import Context
    from .executor import RunOutcome

logger = logging.getLogger(__name__)

# -- Resource Registry --

_resource_registry: dict[str, type[Resource]] = {}


def resource(name: str):
    """Register a Resource class under a declarable type name."""

    def decorator(cls):
        cls.resource_type = name
        _resource_registry[name] = cls
        return cls

    return decorator


def resource_class(name: str) -> type[Resource]:
    if name not in _resource_registry:
        raise ValueError(f"Unknown resource type: '{name}'")
    return _resource_registry[name]


class ResourceState(StrEnum):
    DECLARED = "declared"
    RESOLVING = "resolving"
    FINAL = "final"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


# -- Resource Base --


class Resource:
    """Base class for declared units of desired state.

    Subclasses declare ``Property`` descriptors, an ``Actions`` enum listing
    every action they support, a ``default_action`` and one ``@action``
    step builder per enum member.
    """

    resource_type: ClassVar[str] = "resource"

    class Actions(StrEnum):
        NOTHING = "nothing"

    default_action: ClassVar[StrEnum] = Actions.NOTHING

    _properties: ClassVar[dict[str, Property[Any]]] = {}
    _actions: ClassVar[dict[str, ActionDef]] = {}

    compile_time = Property(
        bool,
        default=False,
        desired_state=False,
        description="Run the action as soon as the resource is declared.",
    )

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        properties: dict[str, Property[Any]] = {}
        defs: dict[str, ActionDef] = {}
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                if isinstance(value, Property):
                    properties.pop(attr, None)
                    properties[attr] = value
                elif (action_def := getattr(value, "__action__", None)) is not None:
                    defs[action_def.name] = action_def

        table: dict[str, ActionDef] = {}
        for member in cls.Actions:
            if member.value not in defs:
                raise TypeError(f"{cls.__name__} declares action '{member}' without a step builder")
            table[member.value] = defs[member.value]
        if cls.default_action.value not in table:
            raise TypeError(f"{cls.__name__} default action '{cls.default_action}' is not declared")

        cls._properties = properties
        cls._actions = table

    def __init__(self, name: str, **properties: Any) -> None:
        self.name = name
        self.state = ResourceState.DECLARED
        self.updated = False
        self.last_outcome: RunOutcome | None = None
        self._values: dict[str, Any] = {}
        self._resolving: list[str] = []
        self._notifications: list[Notification] = []
        for key, value in properties.items():
            self.set(key, value)

    @property
    def key(self) -> str:
        """Address used by notifications, e.g. ``facts[reload hostname]``."""
        return f"{self.resource_type}[{self.name}]"

    @classmethod
    def properties(cls) -> dict[str, Property[Any]]:
        return dict(cls._properties)

    # -- Properties --

    def _property(self, name: str) -> Property[Any]:
        try:
            return self._properties[name]
        except KeyError:
            raise UnknownProperty(f"{self.resource_type} has no property '{name}'") from None

    def get(self, name: str) -> Any:
        """Return a property value, resolving its default on first read."""
        prop = self._property(name)
        if name in self._values:
            return self._values[name]
        if name in self._resolving:
            chain = " -> ".join([*self._resolving[self._resolving.index(name) :], name])
            raise PropertyCycleError(f"property default refers to itself: {chain}")

        self._resolving.append(name)
        try:
            value = prop.resolve_default(self)
        finally:
            self._resolving.pop()
        logger.debug("Resolved %s.%s = %r", self.key, name, value)
        self._values[name] = value
        return value

    def set(self, name: str, value: Any) -> None:
        prop = self._property(name)
        if self.state not in (ResourceState.DECLARED, ResourceState.RESOLVING):
            raise PropertyFrozen(f"cannot set '{name}' on {self.key} once it is {self.state}")
        self._values[name] = prop.validate(value)

    def resolve_all(self) -> dict[str, Any]:
        """Resolve every property, in declaration order."""
        if self.state is ResourceState.DECLARED:
            self.state = ResourceState.RESOLVING
        return {name: self.get(name) for name in self._properties}

    def freeze(self) -> dict[str, Any]:
        """Resolve all properties and forbid further assignment."""
        values = self.resolve_all()
        if self.state is ResourceState.RESOLVING:
            self.state = ResourceState.FINAL
        return values

    def desired_state(self) -> dict[str, Any]:
        """Resolved values of the properties that describe desired state."""
        return {
            name: self.get(name)
            for name, prop in self._properties.items()
            if prop.desired_state
        }

    # -- Actions --

    @classmethod
    def action_names(cls) -> list[str]:
        return list(cls._actions)

    def build_action(self, name: StrEnum | str | None, ctx: Context) -> Action:
        """Build the ordered steps of an action for this resource."""
        if name is None:
            name = self.default_action
        name = str(name)
        if name not in self._actions:
            raise UnknownAction(
                f"{self.resource_type} has no action '{name}'",
                available=", ".join(self._actions),
            )
        action_def = self._actions[name]
        steps = list(action_def.build(self, ctx))
        return Action(name=action_def.name, description=action_def.description, steps=steps)

    @action(Actions.NOTHING, description="Do nothing unless notified.")
    def _nothing(self, ctx: Context) -> Iterable[Any]:
        return ()

    def notifies(
        self,
        action_name: str,
        target: str,
        timing: Timing | str = Timing.DELAYED,
    ) -> None:
        """Notify ``target`` whenever an action of this resource updates."""
        self._notifications.append(notify(action_name, target, timing))

    @property
    def notifications(self) -> list[Notification]:
        return list(self._notifications)

    def supporting_resources(self, ctx: Context) -> Iterable[tuple[Resource, str | None]]:
        """Resources (with their declared action) this resource relies on."""
        return ()

    def run_action(
        self,
        action_name: StrEnum | str | None = None,
        *,
        context: Context | None = None,
    ) -> RunOutcome:
        """Run one action and return its outcome."""
        from .context import Context
        from .executor import Executor

        return Executor(context or Context()).run(self, action_name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, state={self.state})"
