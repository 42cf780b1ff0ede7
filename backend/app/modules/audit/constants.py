from __future__ import annotations


class AuditAction:
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    MODERATE = "MODERATE"
    CANCEL_SUBSCRIPTION = "CANCEL_SUBSCRIPTION"
    CHANGE_PLAN = "CHANGE_PLAN"
    REFUND_PAYMENT = "REFUND_PAYMENT"
    VIEW_CONVERSATION = "VIEW_CONVERSATION"
    DELETE_MESSAGE = "DELETE_MESSAGE"
    VIEW_PERSONAL_DATA = "VIEW_PERSONAL_DATA"
    EXPORT_DATA = "EXPORT_DATA"
    CHANGE_PERMISSIONS = "CHANGE_PERMISSIONS"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"


class AuditTable:
    USERS = "users"
    ADMIN_USERS = "admin_users"
    NANNIES = "nannies"
    FAMILIES = "families"
    CHILDREN = "children"
    SUBSCRIPTIONS = "subscriptions"
    PLANS = "plans"
    PAYMENTS = "payments"
    REVIEWS = "reviews"
    JOBS = "jobs"
    JOB_APPLICATIONS = "job_applications"
    VALIDATION_REQUESTS = "validation_requests"
    CONVERSATIONS = "conversations"
    MESSAGES = "messages"
    COUPONS = "coupons"


AUDIT_ACTIONS = tuple(v for k, v in vars(AuditAction).items() if not k.startswith("_"))
AUDIT_TABLES = tuple(v for k, v in vars(AuditTable).items() if not k.startswith("_"))

SENSITIVE_FIELDS = ("password", "passwordHash", "password_hash", "hashed_password")
