from typing import Tuple

from trial_state import AccessTier

LANGUAGES = {
    "English": {
        # Status descriptions
        "status_production": "Production Version",
        "status_trial_active": "Trial Active - {remaining} remaining",
        "status_trial_paused": "Trial Paused - {remaining} remaining",
        "status_trial_expired": "Trial Expired",
        "status_beta": "Beta Access Unlocked",

        # Status alert
        "alert_production_title": "Production Version",
        "alert_production_body": "You are using the production version of the app.",
        "alert_trial_title": "Trial Mode",
        "alert_trial_body": "You are in trial mode with {remaining} remaining.",
        "alert_expired_title": "Trial Expired",
        "alert_expired_body": "Your trial period has ended. Enter a beta code to unlock full access "
                              "or upgrade to the full version.",
        "alert_beta_title": "Beta Access",
        "alert_beta_body": "You have full beta access with all features unlocked.",
        "enter_beta_code": "Enter Beta Code",
        "ok": "OK",

        # Password prompt
        "prompt_title": "Enter Beta Code",
        "prompt_body": "Enter your beta access code to unlock full features",
        "prompt_placeholder": "Beta code",
        "unlock": "Unlock",
        "cancel": "Cancel",
        "try_again": "Try Again",
        "unlock_success_title": "Success!",
        "unlock_success_body": "Beta access unlocked. You now have full access to all features.",
        "invalid_code_title": "Invalid Code",
        "invalid_code_body": "The beta code you entered is incorrect. Please try again.",

        # Live window
        "window_title": "Trial Status",
        "window_trial": "Trial Mode ({remaining})",
        "window_expired": "Trial has expired",

        # Desktop notifications
        "notify_expired_title": "Trial Expired",
        "notify_expired_body": "Your trial period has ended. Enter a beta code to keep using the app.",
        "notify_unlocked_title": "Beta Access Unlocked",
        "notify_unlocked_body": "Thank you for testing! All features are now available.",
        "notify_warning_title": "Trial Ending Soon",
        "notify_warning_body": "Your trial will expire in {remaining}.",
    },
}


class LanguageManager:
    def __init__(self, language="English"):
        self.language = language if language in LANGUAGES else "English"
        self.supported_languages = list(LANGUAGES.keys())

    def set_language(self, language):
        if language in LANGUAGES:
            self.language = language
        else:
            self.language = "English"

    def get_string(self, key, **kwargs):
        string = LANGUAGES.get(self.language, {}).get(key, f"<{key}>")
        if kwargs:
            string = string.format(**kwargs)
        return string


def status_description(tier: AccessTier, formatted_remaining: str, is_paused: bool,
                       lang: LanguageManager = None) -> str:
    """One-line status text for labels and logs."""
    lang = lang or LanguageManager()
    if tier == AccessTier.TRIAL:
        key = "status_trial_paused" if is_paused else "status_trial_active"
        return lang.get_string(key, remaining=formatted_remaining)
    if tier == AccessTier.EXPIRED_TRIAL:
        return lang.get_string("status_trial_expired")
    if tier == AccessTier.BETA:
        return lang.get_string("status_beta")
    return lang.get_string("status_production")


def status_alert_content(tier: AccessTier, formatted_remaining: str,
                         show_unlock_option: bool = True,
                         lang: LanguageManager = None) -> Tuple[str, str, bool]:
    """
    Title, message and whether to offer the beta code button for the status
    alert. Production and beta never offer the button.
    """
    lang = lang or LanguageManager()
    if tier == AccessTier.PRODUCTION:
        return lang.get_string("alert_production_title"), lang.get_string("alert_production_body"), False
    if tier == AccessTier.TRIAL:
        return (lang.get_string("alert_trial_title"),
                lang.get_string("alert_trial_body", remaining=formatted_remaining),
                show_unlock_option)
    if tier == AccessTier.EXPIRED_TRIAL:
        return lang.get_string("alert_expired_title"), lang.get_string("alert_expired_body"), show_unlock_option
    return lang.get_string("alert_beta_title"), lang.get_string("alert_beta_body"), False
