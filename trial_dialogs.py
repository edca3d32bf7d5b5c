import logging
from tkinter import messagebox
from typing import Callable, Optional

import customtkinter as ctk

from localization import LanguageManager, status_alert_content
from trial_events import StateChanged, TimeUpdated, TrialEvent
from trial_manager import BetaTrialManager
from trial_state import AccessTier

logger = logging.getLogger(__name__)

ResultCallback = Callable[[bool], None]


def _center(window, width: int, height: int):
    window.update_idletasks()
    x = (window.winfo_screenwidth() - width) // 2
    y = (window.winfo_screenheight() - height) // 2
    window.geometry(f"{width}x{height}+{x}+{y}")


class PasswordPromptDialog(ctk.CTkToplevel):
    """Asks for the beta code and unlocks the manager. Wrong codes keep the dialog open."""

    def __init__(self, parent, manager: BetaTrialManager, on_result: Optional[ResultCallback] = None,
                 lang: Optional[LanguageManager] = None):
        super().__init__(parent)
        self.manager = manager
        self.on_result = on_result
        self.lang = lang or LanguageManager()
        self.result = False

        self.title(self.lang.get_string("prompt_title"))
        _center(self, 420, 220)
        self.resizable(False, False)
        self.grab_set()

        frame = ctk.CTkFrame(self, corner_radius=15)
        frame.pack(fill="both", expand=True, padx=20, pady=20)

        ctk.CTkLabel(frame, text=self.lang.get_string("prompt_body"), wraplength=340).pack(pady=(15, 10))

        self.entry = ctk.CTkEntry(frame, width=260, show="•",
                                  placeholder_text=self.lang.get_string("prompt_placeholder"))
        self.entry.pack(pady=5)
        self.entry.bind("<Return>", lambda _event: self._on_unlock())
        self.entry.focus_set()

        self.error_label = ctk.CTkLabel(frame, text="", text_color="red")
        self.error_label.pack()

        buttons = ctk.CTkFrame(frame, fg_color="transparent")
        buttons.pack(pady=10)
        ctk.CTkButton(buttons, text=self.lang.get_string("unlock"), command=self._on_unlock, width=110,
                      fg_color="#4CAF50", hover_color="#45a049").pack(side="left", padx=10)
        ctk.CTkButton(buttons, text=self.lang.get_string("cancel"), command=self._on_cancel, width=110,
                      fg_color="#D32F2F", hover_color="#D10E00").pack(side="left", padx=10)

        self.protocol("WM_DELETE_WINDOW", self._on_cancel)

    def _on_unlock(self):
        password = self.entry.get()
        if password and self.manager.unlock(password):
            self.result = True
            messagebox.showinfo(self.lang.get_string("unlock_success_title"),
                                self.lang.get_string("unlock_success_body"), parent=self)
            self._finish()
            return

        self.entry.delete(0, "end")
        self.error_label.configure(text=self.lang.get_string("invalid_code_body"))

    def _on_cancel(self):
        self.result = False
        self._finish()

    def _finish(self):
        self.grab_release()
        self.destroy()
        if self.on_result:
            self.on_result(self.result)


def show_trial_status_dialog(parent, manager: BetaTrialManager, show_unlock_option: bool = True,
                             on_result: Optional[ResultCallback] = None,
                             lang: Optional[LanguageManager] = None) -> ctk.CTkToplevel:
    """Status alert with an optional "Enter Beta Code" button for trial and expired tiers."""
    lang = lang or LanguageManager()
    title, message, show_unlock = status_alert_content(manager.current_tier, manager.formatted_remaining_time,
                                                       show_unlock_option, lang)

    dialog = ctk.CTkToplevel(parent)
    dialog.title(title)
    _center(dialog, 460, 200)
    dialog.resizable(False, False)

    frame = ctk.CTkFrame(dialog, corner_radius=15)
    frame.pack(fill="both", expand=True, padx=20, pady=20)
    ctk.CTkLabel(frame, text=title, font=ctk.CTkFont(size=18, weight="bold")).pack(pady=(10, 5))
    ctk.CTkLabel(frame, text=message, wraplength=380, justify="center").pack(pady=5)

    buttons = ctk.CTkFrame(frame, fg_color="transparent")
    buttons.pack(pady=10)

    def on_enter_code():
        dialog.destroy()
        PasswordPromptDialog(parent, manager, on_result=on_result, lang=lang)

    def on_ok():
        dialog.destroy()
        if on_result:
            on_result(False)

    if show_unlock:
        ctk.CTkButton(buttons, text=lang.get_string("enter_beta_code"), command=on_enter_code,
                      width=150).pack(side="left", padx=10)
    ctk.CTkButton(buttons, text=lang.get_string("ok"), command=on_ok, width=100).pack(side="left", padx=10)
    return dialog


class TrialStatusWindow(ctk.CTk):
    """Main window with a live countdown label and an unlock button."""

    def __init__(self, manager: BetaTrialManager, lang: Optional[LanguageManager] = None):
        super().__init__()
        self.manager = manager
        self.lang = lang or LanguageManager()

        self.title(self.lang.get_string("window_title"))
        _center(self, 360, 180)

        self.state_label = ctk.CTkLabel(self, text="", font=ctk.CTkFont(size=16, weight="bold"))
        self.state_label.pack(pady=(30, 10))
        self.unlock_button = ctk.CTkButton(self, text=self.lang.get_string("enter_beta_code"),
                                           command=self._on_unlock_pressed)
        self.unlock_button.pack(pady=10)

        # Events arrive on the tick thread; Tk may only be touched from its own thread
        self._unsubscribe = manager.events.subscribe(lambda event: self.after(0, self._on_event, event))
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self._render()

    def _on_event(self, event: TrialEvent):
        if isinstance(event, TimeUpdated):
            self.state_label.configure(
                text=self.lang.get_string("window_trial", remaining=self.manager.formatted_remaining_time))
        elif isinstance(event, StateChanged):
            self._render()

    def _render(self):
        tier = self.manager.current_tier
        if tier == AccessTier.EXPIRED_TRIAL:
            self.state_label.configure(text=self.lang.get_string("window_expired"))
        else:
            self.state_label.configure(text=self.manager.status_description(self.lang))

        if tier in (AccessTier.TRIAL, AccessTier.EXPIRED_TRIAL):
            self.unlock_button.pack(pady=10)
        else:
            self.unlock_button.pack_forget()

    def _on_unlock_pressed(self):
        show_trial_status_dialog(self, self.manager, lang=self.lang)

    def _on_close(self):
        self._unsubscribe()
        self.manager.pause_countdown()
        self.destroy()
