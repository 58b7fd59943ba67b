"""Application bar: logo, label and a lazily loaded wallet-connect button."""

from __future__ import annotations

import importlib
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from prompt_toolkit.formatted_text import ANSI
from rich.console import Console
from rich.text import Text

from solintro.cli.branding import logo_text
from solintro.cli.wallet_button import WalletContext

logger = logging.getLogger(__name__)

LOGO_PATH = "/solanaLogo.png"
LOGO_ALT = ""
APP_LABEL = "Wallet-Adapter Example"
DEFAULT_WIDGET = "solintro.cli.wallet_button.WalletMultiButton"
LOADING_PLACEHOLDER = "…"
ERROR_PLACEHOLDER = "wallet unavailable"


class WalletContextMissingError(RuntimeError):
    """Raised when the app bar renders without a wallet context."""


class LoadState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class WidgetLoader:
    """Deferred loader for the wallet widget.

    ``load()`` submits the factory to a worker thread and returns LOADING
    straight away; the loader settles to READY, or to ERROR with the exception
    kept on ``error``, when the factory finishes. Once it has left IDLE the
    loader never loads again.
    """

    def __init__(self, factory: Callable[[], Any], executor: Executor | None = None) -> None:
        self._factory = factory
        self._executor = executor
        self._state = LoadState.IDLE
        self._widget: Any = None
        self._error: BaseException | None = None
        self._future: Future[Any] | None = None
        self._lock = threading.RLock()
        self._subscribers: list[Callable[[LoadState], None]] = []

    @classmethod
    def from_import_path(cls, dotted_path: str) -> WidgetLoader:
        module_name, _, attr = dotted_path.rpartition(".")
        if not module_name:
            raise ValueError(f"Expected 'module.attribute', got '{dotted_path}'")

        def _import() -> Any:
            module = importlib.import_module(module_name)
            return getattr(module, attr)

        return cls(_import)

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def widget(self) -> Any:
        return self._widget

    @property
    def error(self) -> BaseException | None:
        return self._error

    def subscribe(self, callback: Callable[[LoadState], None]) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def load(self) -> LoadState:
        with self._lock:
            if self._state is not LoadState.IDLE:
                return self._state
            self._transition(LoadState.LOADING)
            if self._executor is None:
                executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="widget-loader")
                self._future = executor.submit(self._factory)
                executor.shutdown(wait=False)
            else:
                self._future = self._executor.submit(self._factory)
            self._future.add_done_callback(self._settle)
            return self._state

    def wait(self, timeout: float | None = None) -> LoadState:
        """Block until a started load finishes or ``timeout`` elapses."""
        future = self._future
        if future is None:
            return self._state
        try:
            future.exception(timeout=timeout)
        except TimeoutError:
            return self._state
        self._settle(future)
        return self._state

    def _settle(self, future: Future[Any]) -> None:
        with self._lock:
            if self._state is not LoadState.LOADING:
                return
            error = future.exception()
            if error is not None:
                logger.warning("Wallet widget failed to load: %s", error)
                self._error = error
                self._transition(LoadState.ERROR)
                return
            self._widget = future.result()
            self._transition(LoadState.READY)

    def _transition(self, state: LoadState) -> None:
        logger.debug("Widget loader %s -> %s", self._state.value, state.value)
        self._state = state
        for callback in list(self._subscribers):
            callback(state)


@dataclass(slots=True)
class AppBarSnapshot:
    """Materialised bar contents for display and testing."""

    logo: str
    label: str
    wallet: str
    widget_state: LoadState

    def to_plain(self) -> str:
        return "  ".join(part for part in (self.logo, self.label, self.wallet) if part)


class AppBar:
    """Header with the brand logo, a static label and the wallet button.

    The wallet widget is only loaded when the console is interactive; in
    captured or piped output its slot stays empty. The first render starts the
    load and shows a placeholder until the loader settles.
    """

    def __init__(
        self,
        *,
        console: Console,
        wallet_context: WalletContext | None,
        loader: WidgetLoader | None = None,
        asset_root: Path | None = None,
        logo_path: str = LOGO_PATH,
        label: str = APP_LABEL,
    ) -> None:
        self._console = console
        self._wallet_context = wallet_context
        self._loader = loader or WidgetLoader.from_import_path(DEFAULT_WIDGET)
        self._asset_root = asset_root or (Path.cwd() / "public")
        self._logo_path = logo_path
        self._label = label

    @property
    def loader(self) -> WidgetLoader:
        return self._loader

    @property
    def supports_toolbar(self) -> bool:
        return self._console.is_terminal

    @property
    def logo_asset(self) -> Path:
        return self._asset_root / self._logo_path.lstrip("/")

    def render_text(self) -> Text:
        text = Text()
        separator = Text(" │ ", style="solintro.text.dim")
        parts = [self._logo(), Text(self._label, style="solintro.label"), self._wallet_widget()]
        for part in parts:
            if not part.plain:
                continue
            if text.plain:
                text.append_text(separator)
            text.append_text(part)
        return text

    def snapshot(self) -> AppBarSnapshot:
        return AppBarSnapshot(
            logo=self._logo().plain,
            label=self._label,
            wallet=self._wallet_widget().plain,
            widget_state=self._loader.state,
        )

    def render_plain(self) -> str:
        return self.snapshot().to_plain()

    def toolbar(self) -> ANSI | str:
        if not self.supports_toolbar:
            return ""
        with self._console.capture() as capture:
            self._console.print(self.render_text(), end="")
        return ANSI(capture.get())

    def _logo(self) -> Text:
        if self.logo_asset.exists():
            return logo_text()
        logger.debug("Logo asset %s missing; using alt text", self.logo_asset)
        return Text(LOGO_ALT)

    def _wallet_widget(self) -> Text:
        if self._wallet_context is None:
            raise WalletContextMissingError(
                "AppBar needs a WalletContext; wrap it in a wallet provider before rendering."
            )
        if not self._console.is_terminal:
            return Text()
        state = self._loader.load()
        if state is LoadState.LOADING:
            return Text(LOADING_PLACEHOLDER, style="solintro.wallet.pending")
        if state is LoadState.ERROR:
            return Text(ERROR_PLACEHOLDER, style="solintro.wallet.error")
        widget = self._loader.widget(self._wallet_context)
        return widget.render()


__all__ = [
    "APP_LABEL",
    "AppBar",
    "AppBarSnapshot",
    "LOGO_PATH",
    "LoadState",
    "WalletContextMissingError",
    "WidgetLoader",
]
