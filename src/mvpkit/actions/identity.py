"""Qualified action identities shared by presenters and views.

Actions are plain value objects. A presenter registers handlers against them
and a view binds its triggers to the very same constants, so neither side has
to know about the other::

    _ORDERS = ViewAction.factory().with_qualifier("Orders")

    class OrderActions:
        SUBMIT = _ORDERS.create(StandardActionNames.Common.SUBMIT)   # "Orders.Submit"
        REFRESH = _ORDERS.create(StandardActionNames.Crud.REFRESH)   # "Orders.Refresh"
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ViewAction",
    "ViewActionFactory",
    "StandardActionNames",
    "StandardActions",
    "QUALIFIER_SEPARATOR",
]

QUALIFIER_SEPARATOR = "."


@dataclass(frozen=True, slots=True, order=True)
class ViewAction:
    """Immutable key identifying one user-invocable operation.

    Equality, ordering and hashing are structural on ``(qualifier, name)``.

    Attributes:
        qualifier: Dotted namespace (may be empty).
        name: Short action name within the namespace.
    """

    qualifier: str
    name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "qualifier", str(self.qualifier or ""))
        object.__setattr__(self, "name", str(self.name if self.name is not None else ""))

    @classmethod
    def create(cls, name: str, qualifier: str = "") -> ViewAction:
        """Build an action from a short name and optional qualifier."""

        return cls(qualifier=qualifier, name=name)

    @classmethod
    def parse(cls, key: str) -> ViewAction:
        """Split a fully qualified key (``"A.B.Name"``) on its last separator."""

        qualifier, _, name = str(key).rpartition(QUALIFIER_SEPARATOR)
        return cls(qualifier=qualifier, name=name)

    @staticmethod
    def factory() -> ViewActionFactory:
        """Return the root (unqualified) factory."""

        return _ROOT_FACTORY

    @property
    def key(self) -> str:
        """Fully qualified key, e.g. ``"Orders.Submit"``."""

        if not self.qualifier:
            return self.name
        return f"{self.qualifier}{QUALIFIER_SEPARATOR}{self.name}"

    def with_qualifier(self, factory: ViewActionFactory) -> ViewAction:
        """Re-create this action's short name under ``factory``'s qualifier."""

        return factory.create(self.name)

    def with_suffix(self, suffix: str, sep: str = "_") -> ViewAction:
        """Derive a sibling action, e.g. ``Save`` -> ``Save_Draft``."""

        return ViewAction(qualifier=self.qualifier, name=f"{self.name}{sep}{suffix}")

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True, slots=True)
class ViewActionFactory:
    """Produces actions sharing a qualifier; factories nest to avoid collisions."""

    qualifier: str = ""

    def with_qualifier(self, *qualifiers: str) -> ViewActionFactory:
        """Return a factory whose qualifier appends ``qualifiers`` (blank parts skipped)."""

        parts = [str(part) for part in qualifiers if part is not None and str(part).strip()]
        if not parts:
            return self
        addition = QUALIFIER_SEPARATOR.join(parts)
        if not self.qualifier:
            return ViewActionFactory(addition)
        return ViewActionFactory(f"{self.qualifier}{QUALIFIER_SEPARATOR}{addition}")

    def create(self, name: str) -> ViewAction:
        return ViewAction(qualifier=self.qualifier, name=name)

    def __str__(self) -> str:
        return self.qualifier


_ROOT_FACTORY = ViewActionFactory()


class StandardActionNames:
    """Conventional short names; combine them with a qualified factory."""

    class Crud:
        ADD = "Add"
        EDIT = "Edit"
        DELETE = "Delete"
        SAVE = "Save"
        CANCEL = "Cancel"
        REFRESH = "Refresh"
        RESET = "Reset"
        REMOVE = "Remove"
        CREATE = "Create"
        UPDATE = "Update"

    class Dialog:
        OK = "Ok"
        CANCEL = "Cancel"
        YES = "Yes"
        NO = "No"
        APPLY = "Apply"
        CLOSE = "Close"
        RETRY = "Retry"
        IGNORE = "Ignore"
        ABORT = "Abort"

    class Navigation:
        NEXT = "Next"
        PREVIOUS = "Previous"
        FIRST = "First"
        LAST = "Last"
        GO_BACK = "GoBack"
        GO_FORWARD = "GoForward"
        GO_TO = "GoTo"
        OPEN = "Open"

    class Data:
        LOAD = "Load"
        RELOAD = "Reload"
        IMPORT = "Import"
        EXPORT = "Export"
        FILTER = "Filter"
        SORT = "Sort"
        SEARCH = "Search"
        FIND = "Find"
        VIEW = "View"
        CLEAR = "Clear"

    class File:
        NEW = "New"
        OPEN = "Open"
        SAVE = "Save"
        SAVE_AS = "SaveAs"
        CLOSE = "Close"
        PRINT = "Print"
        PRINT_PREVIEW = "PrintPreview"
        PAGE_SETUP = "PageSetup"
        PRINT_SETUP = "PrintSetup"

    class Edit:
        UNDO = "Undo"
        REDO = "Redo"
        CUT = "Cut"
        COPY = "Copy"
        PASTE = "Paste"
        DELETE = "Delete"
        SELECT_ALL = "SelectAll"

    class View:
        SHOW = "Show"
        HIDE = "Hide"
        TOGGLE = "Toggle"
        EXPAND = "Expand"
        COLLAPSE = "Collapse"
        ZOOM_IN = "ZoomIn"
        ZOOM_OUT = "ZoomOut"
        FULL_SCREEN = "FullScreen"

    class Common:
        SUBMIT = "Submit"
        CONFIRM = "Confirm"
        START = "Start"
        STOP = "Stop"
        PAUSE = "Pause"
        RESUME = "Resume"
        HELP = "Help"
        SETTINGS = "Settings"
        ABOUT = "About"


_NAMES = StandardActionNames


class StandardActions:
    """Ready-made unqualified actions for the most common commands."""

    OK = ViewAction.create(_NAMES.Dialog.OK)
    CANCEL = ViewAction.create(_NAMES.Dialog.CANCEL)
    YES = ViewAction.create(_NAMES.Dialog.YES)
    NO = ViewAction.create(_NAMES.Dialog.NO)
    APPLY = ViewAction.create(_NAMES.Dialog.APPLY)
    CLOSE = ViewAction.create(_NAMES.Dialog.CLOSE)
    RETRY = ViewAction.create(_NAMES.Dialog.RETRY)

    SAVE = ViewAction.create(_NAMES.Crud.SAVE)
    ADD = ViewAction.create(_NAMES.Crud.ADD)
    EDIT = ViewAction.create(_NAMES.Crud.EDIT)
    DELETE = ViewAction.create(_NAMES.Crud.DELETE)
    REMOVE = ViewAction.create(_NAMES.Crud.REMOVE)
    REFRESH = ViewAction.create(_NAMES.Crud.REFRESH)
    RESET = ViewAction.create(_NAMES.Crud.RESET)

    NEW = ViewAction.create(_NAMES.File.NEW)
    OPEN = ViewAction.create(_NAMES.File.OPEN)
    SAVE_AS = ViewAction.create(_NAMES.File.SAVE_AS)
    PRINT = ViewAction.create(_NAMES.File.PRINT)

    UNDO = ViewAction.create(_NAMES.Edit.UNDO)
    REDO = ViewAction.create(_NAMES.Edit.REDO)
    CUT = ViewAction.create(_NAMES.Edit.CUT)
    COPY = ViewAction.create(_NAMES.Edit.COPY)
    PASTE = ViewAction.create(_NAMES.Edit.PASTE)
    SELECT_ALL = ViewAction.create(_NAMES.Edit.SELECT_ALL)

    NEXT = ViewAction.create(_NAMES.Navigation.NEXT)
    PREVIOUS = ViewAction.create(_NAMES.Navigation.PREVIOUS)
    FIRST = ViewAction.create(_NAMES.Navigation.FIRST)
    LAST = ViewAction.create(_NAMES.Navigation.LAST)

    SEARCH = ViewAction.create(_NAMES.Data.SEARCH)
    FILTER = ViewAction.create(_NAMES.Data.FILTER)
    EXPORT = ViewAction.create(_NAMES.Data.EXPORT)
    IMPORT = ViewAction.create(_NAMES.Data.IMPORT)

    SUBMIT = ViewAction.create(_NAMES.Common.SUBMIT)
    CONFIRM = ViewAction.create(_NAMES.Common.CONFIRM)
    START = ViewAction.create(_NAMES.Common.START)
    STOP = ViewAction.create(_NAMES.Common.STOP)
    HELP = ViewAction.create(_NAMES.Common.HELP)
    ABOUT = ViewAction.create(_NAMES.Common.ABOUT)
