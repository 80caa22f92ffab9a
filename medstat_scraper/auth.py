from __future__ import annotations

import logging
import time

from .config import LOGIN_TIMEOUT_MS, Credentials
from .driver import PageDriver


logger = logging.getLogger(__name__)

EMAIL_LABEL = "Email Address"
PASSWORD_LABEL = "Password"
SUBMIT_LABEL = "Log In"
POLL_INTERVAL_MS = 250


def _left_login_form(driver: PageDriver) -> bool:
    return "login" not in driver.url or not driver.has_field(EMAIL_LABEL)


def wait_until_logged_in(driver: PageDriver, timeout_ms: int = LOGIN_TIMEOUT_MS) -> bool:
    """Poll until the browser leaves the login URL or the form goes away."""
    deadline = time.monotonic() + timeout_ms / 1000.0
    while True:
        if _left_login_form(driver):
            return True
        if time.monotonic() >= deadline:
            return False
        driver.pause(POLL_INTERVAL_MS)


def login(
    driver: PageDriver,
    credentials: Credentials,
    login_url: str,
    timeout_ms: int = LOGIN_TIMEOUT_MS,
) -> bool:
    """Submit the storefront login form.

    A login that never leaves the form is not fatal; the caller finds out from
    the search pages. Returns whether the form was left within the timeout.
    """
    driver.goto(login_url)
    driver.fill(EMAIL_LABEL, credentials.email)
    driver.fill(PASSWORD_LABEL, credentials.password)
    driver.click(SUBMIT_LABEL)
    ok = wait_until_logged_in(driver, timeout_ms)
    if not ok:
        logger.warning("Login form still present after %d ms", timeout_ms)
    driver.wait_for_condition(state="networkidle")
    return ok
