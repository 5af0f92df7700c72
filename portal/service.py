"""
Sanctuary Staff Portal

Server-rendered Flask front end over the JSON API. Every page goes through
`call_api`, which forwards the session token kept in the Flask session.
"""

import logging
import os
from datetime import date
from functools import wraps

from flask import Flask, render_template, request, redirect, url_for, flash, session
import requests

from sanctuary.config import (
    API_BASE_URL, API_TIMEOUT_SECONDS, PORTAL_BIND_HOST, PORTAL_PORT, PORTAL_SECRET_KEY, SESSION_HEADER,
    LOG_LEVEL, LOG_FILE,
)
from sanctuary.startup_profile import StartupProfile, validate_portal_profile
from shared.logging_config import setup_logging

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = PORTAL_SECRET_KEY
BASE_URL = API_BASE_URL.rstrip("/")

WAIVER_REQUIRED = "Waiver signature required"


class SessionExpired(Exception):
    pass


class WaiverRequired(Exception):
    pass


def call_api(method: str, path: str, **kwargs):
    """
    Call the JSON API with the portal session's token.

    Returns:
        (ok, payload, error message or None)
    """
    headers = dict(kwargs.pop("headers", None) or {})
    token = session.get("token")
    if token:
        headers[SESSION_HEADER] = token
    resp = requests.request(method, f"{BASE_URL}{path}", headers=headers, timeout=API_TIMEOUT_SECONDS, **kwargs)
    try:
        payload = resp.json()
    except ValueError:
        payload = {"raw": resp.text}

    if 200 <= resp.status_code < 300:
        return True, payload, None

    if isinstance(payload, dict):
        error = payload.get("detail") or payload.get("error") or payload.get("raw")
    else:
        error = str(payload)
    if resp.status_code == 401 and token:
        raise SessionExpired(error)
    if resp.status_code == 403 and error == WAIVER_REQUIRED:
        raise WaiverRequired(error)
    return False, payload, f"HTTP {resp.status_code}: {error}"


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not session.get("token"):
            return redirect(url_for("login"))
        return view(*args, **kwargs)
    return wrapper


@app.errorhandler(SessionExpired)
def handle_session_expired(e):
    session.clear()
    flash("Your session has ended, please sign in again", "warning")
    return redirect(url_for("login"))


@app.errorhandler(WaiverRequired)
def handle_waiver_required(e):
    flash("Please sign the liability waiver to continue", "warning")
    return redirect(url_for("waiver"))


@app.errorhandler(requests.RequestException)
def handle_api_unreachable(e):
    logger.error(f"API unreachable: {e}")
    flash(f"API unreachable: {e}", "danger")
    return render_template("error.html", message="The sanctuary API is not reachable."), 502


@app.context_processor
def inject_identity():
    return {"me": session.get("user"), "original": session.get("original_user")}


def _remember(payload: dict):
    session["user"] = payload.get("user")
    session["original_user"] = payload.get("original_user")


def _done(ok, error, success_message, endpoint, **values):
    if ok:
        flash(success_message, "success")
    else:
        flash(error, "danger")
    return redirect(url_for(endpoint, **values))


# ============================================================================
# SESSION
# ============================================================================

@app.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        return render_template("login.html")

    email = request.form.get("email", "")
    password = request.form.get("password", "")
    if not email or not password:
        flash("Email and password required", "danger")
        return render_template("login.html"), 400

    ok, payload, error = call_api("POST", "/session/login", json={"email": email, "password": password})
    if not ok:
        flash(error, "danger")
        return render_template("login.html"), 401

    session["token"] = payload["token"]
    _remember(payload)
    logger.info(f"Portal login for {payload['user']['id']}")
    if payload.get("requires_waiver"):
        return redirect(url_for("waiver"))
    return redirect(url_for("index"))


@app.route("/logout", methods=["POST"])
def logout():
    if session.get("token"):
        try:
            call_api("POST", "/session/logout")
        except SessionExpired:
            pass
    session.clear()
    flash("Signed out", "info")
    return redirect(url_for("login"))


@app.route("/login-as/<user_id>", methods=["POST"])
@login_required
def login_as(user_id):
    ok, payload, error = call_api("POST", "/session/login-as", json={"user_id": user_id})
    if ok:
        _remember(payload)
        flash(payload.get("message", "Switched user"), "success")
    else:
        flash(error, "danger")
    return redirect(url_for("index"))


@app.route("/revert", methods=["POST"])
@login_required
def revert():
    ok, payload, error = call_api("POST", "/session/revert")
    if ok:
        _remember(payload)
        flash(payload.get("message", "Returned to your account"), "success")
    else:
        flash(error, "danger")
    return redirect(url_for("index"))


@app.route("/waiver", methods=["GET", "POST"])
@login_required
def waiver():
    if request.method == "GET":
        return render_template("waiver.html")

    ok, payload, error = call_api("POST", "/waivers/sign", json={
        "agreed": request.form.get("agreed") == "on",
        "signature": request.form.get("signature", ""),
        "initials": request.form.get("initials", ""),
    })
    if not ok:
        flash(error, "danger")
        return render_template("waiver.html"), 400
    session["user"] = payload["user"]
    flash("Waiver signed, welcome to the sanctuary", "success")
    return redirect(url_for("index"))


# ============================================================================
# PAGES
# ============================================================================

@app.route("/")
@login_required
def index():
    period = request.args.get("period", "6months")
    ok, payload, error = call_api("GET", "/dashboard", params={"period": period})
    if not ok:
        flash(error, "danger")
        payload = {}
    return render_template("dashboard.html", data=payload, period=period)


@app.route("/organizations")
@login_required
def organizations():
    search = request.args.get("search", "")
    ok, orgs, error = call_api("GET", "/organizations", params={"search": search})
    if not ok:
        flash(error, "danger")
        orgs = []
    return render_template("organizations.html", orgs=orgs, search=search)


@app.route("/organizations/create", methods=["POST"])
@login_required
def organization_create():
    form = request.form
    if not form.get("name") or not form.get("admin_email"):
        flash("Organization name and admin email required", "danger")
        return redirect(url_for("organizations"))
    ok, payload, error = call_api("POST", "/organizations", json={
        "name": form.get("name"),
        "industry": form.get("industry", ""),
        "website": form.get("website", ""),
        "admin_first_name": form.get("admin_first_name", ""),
        "admin_last_name": form.get("admin_last_name", ""),
        "admin_email": form.get("admin_email"),
    })
    return _done(ok, error, f"Organization created: {form.get('name')}", "organizations")


@app.route("/organizations/<org_id>/toggle-status", methods=["POST"])
@login_required
def organization_toggle(org_id):
    ok, payload, error = call_api("POST", f"/organizations/{org_id}/toggle-status")
    status = payload.get("status") if ok else None
    return _done(ok, error, f"Organization is now {status}", "organizations")


@app.route("/organizations/<org_id>/delete", methods=["POST"])
@login_required
def organization_delete(org_id):
    ok, _, error = call_api("DELETE", f"/organizations/{org_id}")
    return _done(ok, error, "Organization deleted", "organizations")


@app.route("/proposals")
@login_required
def proposals():
    ok, items, error = call_api("GET", "/proposals")
    if not ok:
        flash(error, "danger")
        items = []
    return render_template("proposals.html", proposals=items)


@app.route("/proposals/<proposal_id>")
@login_required
def proposal_detail(proposal_id):
    ok, proposal, error = call_api("GET", f"/proposals/{proposal_id}")
    if not ok:
        flash(error, "danger")
        return redirect(url_for("proposals"))
    return render_template("proposal_detail.html", proposal=proposal)


@app.route("/proposals/<proposal_id>/<action>", methods=["POST"])
@login_required
def proposal_action(proposal_id, action):
    if action not in ("send", "accept", "reject"):
        flash(f"Unknown action '{action}'", "danger")
        return redirect(url_for("proposals"))
    ok, payload, error = call_api("POST", f"/proposals/{proposal_id}/{action}")
    message = payload.get("message", "Done") if ok else None
    return _done(ok, error, message, "proposal_detail", proposal_id=proposal_id)


@app.route("/invoices")
@login_required
def invoices():
    ok, items, error = call_api("GET", "/invoices")
    if not ok:
        flash(error, "danger")
        items = []
    return render_template("invoices.html", invoices=items)


@app.route("/invoices/<invoice_id>/<action>", methods=["POST"])
@login_required
def invoice_action(invoice_id, action):
    if action not in ("send", "pay"):
        flash(f"Unknown action '{action}'", "danger")
        return redirect(url_for("invoices"))
    ok, payload, error = call_api("POST", f"/invoices/{invoice_id}/{action}")
    message = payload.get("message", "Done") if ok else None
    return _done(ok, error, message, "invoices")


@app.route("/tickets")
@login_required
def tickets():
    bucket = request.args.get("bucket", "Active")
    ok, items, error = call_api("GET", "/tickets", params={"bucket": bucket})
    if not ok:
        flash(error, "danger")
        items = []
    return render_template("tickets.html", tickets=items, bucket=bucket)


@app.route("/tickets/create", methods=["POST"])
@login_required
def ticket_create():
    ok, payload, error = call_api("POST", "/tickets", json={
        "subject": request.form.get("subject", ""),
        "description": request.form.get("description", ""),
        "priority": request.form.get("priority", "Medium"),
    })
    if ok:
        flash(f"Ticket {payload['id']} opened", "success")
        return redirect(url_for("ticket_detail", ticket_id=payload["id"]))
    flash(error, "danger")
    return redirect(url_for("tickets"))


@app.route("/tickets/<ticket_id>", methods=["GET", "POST"])
@login_required
def ticket_detail(ticket_id):
    if request.method == "POST":
        ok, _, error = call_api("POST", f"/tickets/{ticket_id}/reply", json={"text": request.form.get("text", "")})
        return _done(ok, error, "Reply sent", "ticket_detail", ticket_id=ticket_id)

    ok, ticket, error = call_api("GET", f"/tickets/{ticket_id}")
    if not ok:
        flash(error, "danger")
        return redirect(url_for("tickets"))
    return render_template("ticket_detail.html", ticket=ticket)


@app.route("/classes")
@login_required
def classes():
    today = date.today()
    year = request.args.get("year", type=int) or today.year
    month = request.args.get("month", type=int) or today.month
    ok, grid, error = call_api("GET", "/classes/calendar", params={"year": year, "month": month})
    if not ok:
        flash(error, "danger")
        grid = {"year": year, "month": month, "cells": []}
    ok, events, error = call_api("GET", "/classes", params={"start": today.isoformat()})
    if not ok:
        events = []
    return render_template("classes.html", grid=grid, events=events)


@app.route("/classes/<event_id>/<action>", methods=["POST"])
@login_required
def class_action(event_id, action):
    if action not in ("book", "cancel"):
        flash(f"Unknown action '{action}'", "danger")
        return redirect(url_for("classes"))
    ok, payload, error = call_api("POST", f"/classes/{event_id}/{action}")
    message = payload.get("message", "Done") if ok else None
    return _done(ok, error, message, "classes")


def main():
    setup_logging("PORTAL", level=LOG_LEVEL, log_file=LOG_FILE)
    host = os.getenv("SADAYA_PORTAL_HOST", PORTAL_BIND_HOST)
    port = int(os.getenv("SADAYA_PORTAL_PORT", str(PORTAL_PORT)))
    validate_portal_profile(StartupProfile(role="PORTAL", host=host, port=port), BASE_URL)
    app.run(host=host, port=port)


if __name__ == "__main__":
    main()
