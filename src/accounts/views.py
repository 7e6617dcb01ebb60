"""Authentication and organization views for Stockroom."""

import logging

from django_ratelimit.decorators import ratelimit

from django.contrib import messages
from django.contrib.auth import login, logout
from django.contrib.auth.decorators import login_required
from django.contrib.auth.forms import AuthenticationForm
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from .organizations import get_user_organizations, set_current_organization

logger = logging.getLogger(__name__)


def _safe_next(request, fallback):
    next_url = request.POST.get("next") or request.GET.get("next")
    if next_url and url_has_allowed_host_and_scheme(
        next_url, allowed_hosts={request.get_host()}
    ):
        return next_url
    return fallback


@ratelimit(key="ip", rate="5/m", method="POST", block=False)
def login_view(request):
    """Log a user in; users without an organization are turned away."""
    if request.user.is_authenticated:
        return redirect("assets:asset_list")

    if getattr(request, "limited", False):
        messages.error(
            request, "Too many login attempts. Please try again shortly."
        )
        return render(
            request, "registration/login.html", {"form": AuthenticationForm()}
        )

    if request.method == "POST":
        form = AuthenticationForm(request, data=request.POST)
        if form.is_valid():
            user = form.get_user()
            if not get_user_organizations(user).exists():
                logger.info("Login refused for %s: no organization", user.pk)
                messages.error(
                    request,
                    "Your account is not a member of any organization yet.",
                )
                return render(
                    request,
                    "registration/login.html",
                    {"form": AuthenticationForm()},
                )
            login(request, user)
            return redirect(_safe_next(request, "assets:asset_list"))
    else:
        form = AuthenticationForm()

    return render(request, "registration/login.html", {"form": form})


def logout_view(request):
    """Handle user logout."""
    logout(request)
    messages.success(request, "You have been logged out.")
    return redirect("accounts:login")


@login_required
@require_POST
def switch_organization_view(request):
    """Make another of the user's organizations the current one."""
    organization_id = request.POST.get("organization")
    if not organization_id or not set_current_organization(
        request, organization_id
    ):
        messages.error(request, "You are not a member of that organization.")
        return redirect("assets:asset_list")

    messages.success(request, "Organization switched.")
    return redirect(_safe_next(request, "assets:asset_list"))
