import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

COUNTDOWN_ELEMENT = "_countdown"


@dataclass
class HudElement:
    text: str = ""
    visible: bool = True


@dataclass
class Toast:
    text: str
    remaining: float


@dataclass
class Dialog:
    message: str
    button: str


@dataclass
class HudState:
    """On-screen text, dialogs and camera shake for an external host to draw."""

    elements: Dict[str, HudElement] = field(default_factory=dict)
    toasts: List[Toast] = field(default_factory=list)
    dialog: Optional[Dialog] = None
    countdown: Optional[float] = None
    shake_intensity: float = 0.0
    shake_remaining: float = 0.0

    def set_text(self, element_id: str, text: str) -> None:
        self.elements.setdefault(element_id, HudElement()).text = text

    def show(self, element_id: str, visible: bool) -> None:
        element = self.elements.get(element_id)
        if element is not None:
            element.visible = visible

    def toast(self, text: str, seconds: float) -> None:
        self.toasts.append(Toast(text=text, remaining=max(0.0, seconds)))

    def open_dialog(self, message: str, button: str) -> None:
        self.dialog = Dialog(message=message, button=button)

    def close_dialog(self) -> None:
        self.dialog = None

    def start_countdown(self, seconds: float) -> None:
        self.countdown = max(0.0, seconds)
        self.set_text(COUNTDOWN_ELEMENT, str(math.ceil(self.countdown)))
        self.show(COUNTDOWN_ELEMENT, True)

    def shake(self, intensity: float, seconds: float) -> None:
        self.shake_intensity = max(0.0, intensity)
        self.shake_remaining = max(0.0, seconds)

    def advance(self, dt: float) -> None:
        for toast in self.toasts:
            toast.remaining -= dt
        self.toasts = [toast for toast in self.toasts if toast.remaining > 0]

        if self.countdown is not None:
            self.countdown -= dt
            if self.countdown < 0:
                self.countdown = None
                self.show(COUNTDOWN_ELEMENT, False)
            else:
                self.set_text(COUNTDOWN_ELEMENT, str(math.ceil(self.countdown)))

        if self.shake_remaining > 0:
            self.shake_remaining = max(0.0, self.shake_remaining - dt)
            if self.shake_remaining == 0:
                self.shake_intensity = 0.0
