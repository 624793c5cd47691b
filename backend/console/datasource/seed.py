"""
Seed data for the mock data source.

Mirrors the shape of the core insurance API: branch-owned records carry a
`branch` id (policy holders embed the branch object). A few records have
no branch on purpose; they are only visible to a superadmin.
"""

BRANCHES = [
    {"id": 1, "name": "Kohalpur Branch", "branch_code": 101, "location": "Kohalpur", "company": 1,
     "company_name": "Easy Life Insurance"},
    {"id": 2, "name": "Pokhara Branch", "branch_code": 102, "location": "Pokhara", "company": 1,
     "company_name": "Easy Life Insurance"},
    {"id": 3, "name": "Kathmandu Branch", "branch_code": 103, "location": "Kathmandu", "company": 1,
     "company_name": "Easy Life Insurance"},
]

POLICIES = [
    {"id": 1, "name": "Endowment Plus", "policy_code": "END-01", "policy_type": "Endowment",
     "min_sum_assured": "100000.00", "max_sum_assured": "5000000.00"},
    {"id": 2, "name": "Term Shield", "policy_code": "TRM-01", "policy_type": "Term",
     "min_sum_assured": "500000.00", "max_sum_assured": "20000000.00"},
]

# Console accounts. Passwords are hashed when the mock data source starts.
USERS = [
    {"id": 1, "username": "admin", "first_name": "Admin", "last_name": "Admin",
     "email": "admin@easylife.example", "user_type": "superadmin", "is_active": True,
     "branch": None, "password": "password"},
    {"id": 2, "username": "branch", "first_name": "Branch", "last_name": "Manager",
     "email": "kohalpur@easylife.example", "user_type": "branch", "is_active": True,
     "branch": 1, "branch_name": "Kohalpur Branch", "password": "password"},
    {"id": 3, "username": "pokhara", "first_name": "Sita", "last_name": "Gurung",
     "email": "pokhara@easylife.example", "user_type": "branch", "is_active": True,
     "branch": 2, "branch_name": "Pokhara Branch", "password": "password"},
    {"id": 4, "username": "ram.customer", "first_name": "Ram", "last_name": "Thapa",
     "email": "ram@example.com", "user_type": "customer", "is_active": True,
     "branch": 1, "password": "customer-pass"},
    {"id": 5, "username": "hari.customer", "first_name": "Hari", "last_name": "KC",
     "email": "hari@example.com", "user_type": "customer", "is_active": True,
     "branch": 2, "password": "customer-pass"},
    {"id": 6, "username": "retired.branch", "first_name": "Old", "last_name": "Manager",
     "email": "old@easylife.example", "user_type": "branch", "is_active": False,
     "branch": 3, "branch_name": "Kathmandu Branch", "password": "password"},
]

# username/password pairs the demo login uses, by role
DEMO_ACCOUNTS = {
    "superadmin": ("admin", "password"),
    "branch": ("branch", "password"),
}

ENTITIES = {
    "agents": [
        {"id": 1, "agent_name": "Bikash Shrestha", "agent_code": "AG-001", "branch": 1,
         "branch_name": "Kohalpur Branch", "commission_rate": "5.00", "status": "Active",
         "is_active": True, "total_policies_sold": 42},
        {"id": 2, "agent_name": "Anita Rai", "agent_code": "AG-002", "branch": 2,
         "branch_name": "Pokhara Branch", "commission_rate": "4.50", "status": "Active",
         "is_active": True, "total_policies_sold": 17},
        {"id": 3, "agent_name": "Deepak Oli", "agent_code": "AG-003", "branch": 1,
         "branch_name": "Kohalpur Branch", "commission_rate": "5.00", "status": "Inactive",
         "is_active": False, "total_policies_sold": 8},
        {"id": 4, "agent_name": "Unassigned Agent", "agent_code": "AG-004", "branch": None,
         "branch_name": "", "commission_rate": "3.00", "status": "Pending",
         "is_active": False, "total_policies_sold": 0},
    ],
    "agent-applications": [
        {"id": 1, "first_name": "Suman", "last_name": "Karki", "email": "suman@example.com",
         "branch": 1, "branch_name": "Kohalpur Branch", "status": "Pending"},
        {"id": 2, "first_name": "Maya", "last_name": "Tamang", "email": "maya@example.com",
         "branch": 2, "branch_name": "Pokhara Branch", "status": "Approved"},
    ],
    "policy-holders": [
        {"id": 1, "policy_number": "PH-1001", "customer_name": "Ram Thapa",
         "policy_name": "Endowment Plus", "agent_name": "Bikash Shrestha",
         "sum_assured": "500000.00", "status": "Active", "payment_status": "Paid",
         "branch": {"id": 1, "name": "Kohalpur Branch"}},
        {"id": 2, "policy_number": "PH-1002", "customer_name": "Hari KC",
         "policy_name": "Term Shield", "agent_name": "Anita Rai",
         "sum_assured": "1500000.00", "status": "Pending", "payment_status": "Due",
         "branch": {"id": 2, "name": "Pokhara Branch"}},
        {"id": 3, "policy_number": "PH-1003", "customer_name": "Gita Sharma",
         "policy_name": "Endowment Plus", "agent_name": "Deepak Oli",
         "sum_assured": "250000.00", "status": "Active", "payment_status": "Paid",
         "branch": {"id": 1, "name": "Kohalpur Branch"}},
    ],
    "claims": [
        {"id": 1, "policy_holder": 1, "claim_type": "Maturity", "claim_amount": "500000.00",
         "status": "Pending", "branch": 1},
        {"id": 2, "policy_holder": 2, "claim_type": "Death", "claim_amount": "1500000.00",
         "status": "Under Review", "branch": 2},
        {"id": 3, "policy_holder": None, "claim_type": "Other", "claim_amount": "1000.00",
         "status": "Pending", "branch": None},
    ],
    "loans": [
        {"id": 1, "policy_holder": 1, "loan_amount": "50000.00", "interest_rate": "8.00",
         "loan_status": "Active", "branch": 1},
        {"id": 2, "policy_holder": 2, "loan_amount": "120000.00", "interest_rate": "8.50",
         "loan_status": "Active", "branch": 2},
        {"id": 3, "policy_holder": 3, "loan_amount": "20000.00", "interest_rate": "8.00",
         "loan_status": "Closed", "branch": 1},
    ],
    "premium-payments": [
        {"id": 1, "policy_holder": 1, "amount": "12500.00", "payment_status": "Paid", "branch": 1},
        {"id": 2, "policy_holder": 2, "amount": "31000.00", "payment_status": "Due", "branch": 2},
    ],
    "kyc": [
        {"id": 1, "customer": 4, "document_type": "Citizenship", "status": "Verified", "branch": 1},
        {"id": 2, "customer": 5, "document_type": "Passport", "status": "Pending", "branch": 2},
    ],
}
