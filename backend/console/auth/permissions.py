"""
Permission keys — the closed list of protected capabilities in the console.

Keys keep the snake_case names the console front end already checks
(`view_agents`, `manage_configuration`, ...). Adding a protected capability
means adding a member here and a cell to every row of PERMISSION_MATRIX in
roles.py; the matrix refuses to import until that decision is made.
"""

from enum import Enum


class Permission(str, Enum):
    # ── Branches ──
    VIEW_ALL_BRANCHES = "view_all_branches"
    MANAGE_BRANCHES = "manage_branches"

    # ── Agents ──
    VIEW_AGENTS = "view_agents"
    MANAGE_AGENTS = "manage_agents"
    VIEW_AGENT_APPLICATIONS = "view_agent_applications"
    MANAGE_AGENT_APPLICATIONS = "manage_agent_applications"

    # ── Customers ──
    VIEW_CUSTOMERS = "view_customers"
    MANAGE_CUSTOMERS = "manage_customers"
    VIEW_ALL_CUSTOMERS = "view_all_customers"

    # ── Users ──
    MANAGE_USERS = "manage_users"                # customer / branch staff accounts
    MANAGE_ADMIN_USERS = "manage_admin_users"

    # ── Policies ──
    VIEW_POLICIES = "view_policies"
    MANAGE_POLICIES = "manage_policies"
    VIEW_POLICY_HOLDERS = "view_policy_holders"
    MANAGE_POLICY_HOLDERS = "manage_policy_holders"
    VIEW_ALL_POLICY_HOLDERS = "view_all_policy_holders"

    # ── Premiums ──
    VIEW_PREMIUM_PAYMENTS = "view_premium_payments"
    MANAGE_PREMIUM_PAYMENTS = "manage_premium_payments"
    VIEW_ALL_PREMIUM_PAYMENTS = "view_all_premium_payments"

    # ── Claims ──
    VIEW_CLAIMS = "view_claims"
    MANAGE_CLAIMS = "manage_claims"
    VIEW_ALL_CLAIMS = "view_all_claims"
    PROCESS_CLAIMS = "process_claims"

    # ── Loans ──
    VIEW_LOANS = "view_loans"
    MANAGE_LOANS = "manage_loans"
    VIEW_ALL_LOANS = "view_all_loans"

    # ── KYC ──
    VIEW_KYC = "view_kyc"
    MANAGE_KYC = "manage_kyc"
    VIEW_ALL_KYC = "view_all_kyc"

    # ── Underwriting ──
    VIEW_UNDERWRITING = "view_underwriting"
    MANAGE_UNDERWRITING = "manage_underwriting"

    # ── Configuration ──
    MANAGE_CONFIGURATION = "manage_configuration"   # rate tables, company settings
