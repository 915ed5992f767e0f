"""
Module: templates
Purpose: Built-in taxonomy data - default categories/topics/roles and industry layers.
Dependencies: threadclear.taxonomy.models only

Pure data. Edit this file to change built-in vocabularies without touching the
merge/evaluation logic in engine.py. Order matters: topic/role inference and
severity rules are scanned in definition order.
"""

from __future__ import annotations

from threadclear.taxonomy.models import (
    CategoryDefinition,
    IndustryLayer,
    RoleDefinition,
    SeverityRule,
    TopicDefinition,
    ValueDefinition,
)


def _category(key: str, display_name: str, description: str, *values: ValueDefinition) -> CategoryDefinition:
    return CategoryDefinition(key=key, display_name=display_name, description=description, values=values)


def _value(key: str, display_name: str, template: str) -> ValueDefinition:
    return ValueDefinition(key=key, display_name=display_name, template=template)


def _topic(key: str, display_name: str, *keywords: str) -> TopicDefinition:
    return TopicDefinition(key=key, display_name=display_name, keywords=keywords)


def _role(key: str, display_name: str, *keywords: str) -> RoleDefinition:
    return RoleDefinition(key=key, display_name=display_name, keywords=keywords)


def _rule(category: str, value: str, topic: str, severity: str) -> SeverityRule:
    return SeverityRule(
        category=category, value=value, condition=f"topic == '{topic}'", severity=severity
    )


# ---------------------------------------------------------------------------
# Default categories (fixed for every industry)
# ---------------------------------------------------------------------------

DEFAULT_CATEGORIES: tuple[CategoryDefinition, ...] = (
    _category(
        "QUESTION_STATUS",
        "Question Status",
        "Tracks whether questions in the conversation were addressed",
        _value("unanswered", "Unanswered", "{role} inquiry regarding {topic} was not addressed"),
        _value(
            "repeated_unanswered",
            "Repeatedly Unanswered",
            "{role} asked about {topic} multiple times without response",
        ),
        _value(
            "partially_answered",
            "Partially Answered",
            "{role} inquiry about {topic} was partially addressed",
        ),
        _value("deflected", "Deflected", "{role} question about {topic} was deflected"),
    ),
    _category(
        "TENSION_SIGNAL",
        "Tension Signal",
        "Identifies moments of conflict or frustration",
        _value("urgency_expressed", "Urgency Expressed", "{role} expressed urgency regarding {topic}"),
        _value(
            "frustration_expressed",
            "Frustration Expressed",
            "{role} expressed frustration regarding {topic}",
        ),
        _value(
            "repetition_required",
            "Repetition Required",
            "{role} had to repeat themselves regarding {topic}",
        ),
        _value(
            "escalation_threatened",
            "Escalation Threatened",
            "{role} threatened escalation regarding {topic}",
        ),
        _value("escalation_occurred", "Escalation Occurred", "Escalation occurred regarding {topic}"),
        _value("delayed_response", "Delayed Response", "Delayed response regarding {topic}"),
        _value("dismissive_response", "Dismissive Response", "Dismissive response regarding {topic}"),
        _value("tension_detected", "Tension Detected", "Tension detected regarding {topic}"),
    ),
    _category(
        "COMMITMENT",
        "Commitment",
        "Tracks promises and commitments made",
        _value("with_deadline", "With Deadline", "{role} committed to {topic} with specific deadline"),
        _value(
            "vague_timeline",
            "Vague Timeline",
            "{role} committed to {topic} without specific deadline",
        ),
        _value("no_timeline", "No Timeline", "{role} committed to {topic} with no timeline"),
        _value("missed", "Missed", "{role} missed commitment regarding {topic}"),
    ),
    _category(
        "RESPONSE_PATTERN",
        "Response Pattern",
        "Characterizes response behaviors",
        _value("delayed", "Delayed Response", "Delayed response regarding {topic}"),
        _value("dismissive", "Dismissive", "Dismissive response regarding {topic}"),
        _value("low_responsiveness", "Low Responsiveness", "Low overall responsiveness in conversation"),
        _value("low_clarity", "Low Clarity", "Low clarity in communication"),
    ),
    _category(
        "RISK_INDICATOR",
        "Risk Indicator",
        "Flags potential risks in the conversation",
        _value("legal_language", "Legal Language", "Legal language detected regarding {topic}"),
        _value("regulatory_mention", "Regulatory Mention", "Regulatory mention regarding {topic}"),
        _value("financial_dispute", "Financial Dispute", "Financial dispute regarding {topic}"),
        _value("service_failure", "Service Failure", "Service failure regarding {topic}"),
    ),
    _category(
        "DECISION",
        "Decision",
        "Tracks decisions made in the conversation",
        _value("made", "Decision Made", "Decision made regarding {topic}"),
        _value("pending", "Decision Pending", "Decision pending regarding {topic}"),
        _value("reversed", "Decision Reversed", "Decision reversed regarding {topic}"),
    ),
    _category(
        "ACTION_ITEM",
        "Action Item",
        "Tracks tasks and follow-ups",
        _value("assigned", "Assigned", "Action assigned to {role} regarding {topic}"),
        _value("completed", "Completed", "Action completed by {role} regarding {topic}"),
        _value("overdue", "Overdue", "Action overdue for {role} regarding {topic}"),
    ),
    _category(
        "MISALIGNMENT",
        "Misalignment",
        "Identifies misunderstandings or conflicting expectations",
        _value("detected", "Misalignment Detected", "Misalignment detected regarding {topic}"),
        _value("low_alignment_score", "Low Alignment Score", "Low alignment score in conversation"),
    ),
)

# ---------------------------------------------------------------------------
# Default topics and roles ("general" / "unknown" are the inference fallbacks)
# ---------------------------------------------------------------------------

DEFAULT_TOPICS: tuple[TopicDefinition, ...] = (
    _topic("warranty", "Warranty", "warranty", "guarantee", "coverage", "repair", "replacement"),
    _topic("pricing", "Pricing", "price", "cost", "fee", "charge", "rate", "discount", "quote"),
    _topic("delivery", "Delivery", "delivery", "shipping", "ship", "arrive", "tracking", "shipment"),
    _topic(
        "timeline",
        "Timeline",
        "when",
        "deadline",
        "date",
        "schedule",
        "timeline",
        "by friday",
        "asap",
        "eta",
    ),
    _topic("billing", "Billing", "invoice", "bill", "payment", "refund", "credit", "charge"),
    _topic(
        "technical_issue",
        "Technical Issue",
        "error",
        "bug",
        "broken",
        "not working",
        "issue",
        "problem",
        "crash",
    ),
    _topic("contract", "Contract", "contract", "agreement", "terms", "renewal", "cancellation"),
    _topic("service", "Service", "service", "support", "help", "assistance"),
    _topic("product", "Product", "product", "item", "order", "purchase"),
    _topic("policy", "Policy", "policy", "rule", "procedure", "compliance"),
    _topic("general", "General"),
)

DEFAULT_ROLES: tuple[RoleDefinition, ...] = (
    _role("customer", "Customer", "customer", "client", "buyer", "user"),
    _role("representative", "Representative", "rep", "agent", "support", "csr", "service"),
    _role("manager", "Manager", "manager", "supervisor", "lead", "director"),
    _role("vendor", "Vendor", "vendor", "supplier", "partner"),
    _role("internal_team_member", "Internal Team Member", "team", "colleague"),
    _role("unknown", "Unknown"),
)

# ---------------------------------------------------------------------------
# Industry layers
# ---------------------------------------------------------------------------

LEGAL = IndustryLayer(
    topics=(
        _topic(
            "discovery",
            "Discovery",
            "discovery",
            "subpoena",
            "deposition",
            "interrogatories",
            "document request",
        ),
        _topic("privilege", "Privilege", "privilege", "confidential", "attorney-client", "work product"),
        _topic(
            "deadline_court",
            "Court Deadline",
            "filing deadline",
            "court date",
            "hearing",
            "motion due",
            "statute of limitations",
        ),
        _topic("settlement", "Settlement", "settlement", "offer", "mediation", "arbitration", "negotiate"),
        _topic("conflict_check", "Conflict Check", "conflict", "conflict check", "adverse party", "representation"),
        _topic("case_status", "Case Status", "case", "matter", "docket", "filing", "pleading"),
    ),
    roles=(
        _role("attorney", "Attorney", "esq", "attorney", "counsel", "lawyer", "jd"),
        _role("paralegal", "Paralegal", "paralegal", "legal assistant"),
        _role("client", "Client", "client"),
        _role("opposing_counsel", "Opposing Counsel", "opposing", "plaintiff counsel", "defendant counsel"),
        _role("court", "Court", "court", "judge", "clerk", "magistrate"),
    ),
    severity_rules=(
        _rule("QUESTION_STATUS", "unanswered", "deadline_court", "critical"),
        _rule("ACTION_ITEM", "overdue", "deadline_court", "critical"),
    ),
)

HEALTHCARE = IndustryLayer(
    topics=(
        _topic(
            "patient_care",
            "Patient Care",
            "patient",
            "treatment",
            "diagnosis",
            "symptoms",
            "medication",
            "prescription",
            "care plan",
        ),
        _topic(
            "hipaa",
            "HIPAA/Privacy",
            "hipaa",
            "privacy",
            "phi",
            "protected health",
            "authorization",
            "consent",
            "release",
        ),
        _topic(
            "insurance_auth",
            "Insurance/Authorization",
            "prior auth",
            "authorization",
            "insurance",
            "coverage",
            "pre-approval",
            "denial",
            "appeal",
        ),
        _topic("referral", "Referral", "referral", "refer", "specialist", "consult", "consultation"),
        _topic(
            "lab_results",
            "Lab Results",
            "lab",
            "results",
            "test",
            "bloodwork",
            "imaging",
            "scan",
            "mri",
            "ct",
            "xray",
        ),
        _topic("appointment", "Appointment", "appointment", "schedule", "visit", "follow-up", "checkup"),
        _topic("medication", "Medication", "medication", "prescription", "rx", "refill", "dosage", "drug"),
    ),
    roles=(
        _role("physician", "Physician", "dr", "doctor", "md", "do", "physician"),
        _role("nurse", "Nurse", "rn", "nurse", "lpn", "np", "nurse practitioner"),
        _role("patient", "Patient", "patient"),
        _role("insurance_rep", "Insurance Rep", "insurance", "claims", "adjuster", "payer"),
        _role("medical_assistant", "Medical Assistant", "ma", "medical assistant", "cma"),
        _role("pharmacist", "Pharmacist", "pharmacist", "pharmacy", "rph"),
    ),
    severity_rules=(
        _rule("QUESTION_STATUS", "unanswered", "patient_care", "high"),
        _rule("RISK_INDICATOR", "*", "hipaa", "critical"),
    ),
)

FINANCE = IndustryLayer(
    topics=(
        _topic(
            "transaction",
            "Transaction",
            "transaction",
            "transfer",
            "wire",
            "ach",
            "payment",
            "deposit",
            "withdrawal",
        ),
        _topic(
            "compliance_reg",
            "Regulatory Compliance",
            "compliance",
            "sec",
            "finra",
            "aml",
            "kyc",
            "regulation",
            "audit",
            "sox",
        ),
        _topic("account", "Account", "account", "balance", "statement", "portfolio", "holdings"),
        _topic("risk_exposure", "Risk/Exposure", "risk", "exposure", "hedge", "margin", "collateral", "leverage"),
        _topic(
            "fraud",
            "Fraud",
            "fraud",
            "suspicious",
            "unauthorized",
            "dispute",
            "chargeback",
            "identity theft",
        ),
        _topic(
            "investment",
            "Investment",
            "investment",
            "portfolio",
            "stock",
            "bond",
            "fund",
            "etf",
            "retirement",
            "401k",
            "ira",
        ),
        _topic(
            "loan",
            "Loan/Credit",
            "loan",
            "credit",
            "mortgage",
            "interest rate",
            "principal",
            "amortization",
        ),
    ),
    roles=(
        _role("advisor", "Financial Advisor", "advisor", "banker", "relationship manager", "wealth manager"),
        _role("compliance_officer", "Compliance Officer", "compliance", "officer", "cco"),
        _role("client", "Client", "client", "customer", "account holder", "investor"),
        _role("analyst", "Analyst", "analyst", "research"),
        _role("trader", "Trader", "trader", "trading desk"),
    ),
    severity_rules=(
        _rule("RISK_INDICATOR", "*", "fraud", "critical"),
        _rule("RISK_INDICATOR", "*", "compliance_reg", "critical"),
        _rule("QUESTION_STATUS", "unanswered", "transaction", "high"),
    ),
)

RETAIL = IndustryLayer(
    topics=(
        _topic("order_status", "Order Status", "order", "tracking", "shipment", "delivery", "shipped", "delivered"),
        _topic("return", "Return/Exchange", "return", "exchange", "refund", "rma", "store credit"),
        _topic("inventory", "Inventory", "stock", "inventory", "available", "backorder", "out of stock", "restock"),
        _topic("promotion", "Promotion", "coupon", "discount", "promo", "sale", "deal", "code"),
        _topic("loyalty", "Loyalty Program", "loyalty", "points", "rewards", "member", "tier"),
        _topic("product_inquiry", "Product Inquiry", "product", "item", "size", "color", "specs", "dimensions"),
    ),
    roles=(
        _role("customer", "Customer", "customer", "shopper", "buyer"),
        _role("sales_rep", "Sales Rep", "sales", "rep", "associate"),
        _role("support", "Customer Support", "support", "service", "help desk"),
        _role("store_manager", "Store Manager", "manager", "store manager"),
    ),
    severity_rules=(_rule("TENSION_SIGNAL", "escalation_threatened", "return", "high"),),
)

TECHNOLOGY = IndustryLayer(
    topics=(
        _topic("bug", "Bug/Defect", "bug", "defect", "error", "crash", "broken", "issue", "regression"),
        _topic("feature_request", "Feature Request", "feature", "enhancement", "request", "wishlist", "improvement"),
        _topic("outage", "Outage/Incident", "outage", "down", "incident", "unavailable", "degraded", "p1", "sev1"),
        _topic("security", "Security", "security", "vulnerability", "breach", "cve", "patch", "exploit"),
        _topic("integration", "Integration", "api", "integration", "webhook", "connect", "sync", "endpoint"),
        _topic("deployment", "Deployment", "deploy", "release", "rollout", "update", "version", "ci/cd"),
        _topic("performance", "Performance", "performance", "slow", "latency", "timeout", "optimization"),
    ),
    roles=(
        _role("developer", "Developer", "dev", "developer", "engineer", "swe"),
        _role("devops", "DevOps/SRE", "devops", "sre", "ops", "infrastructure"),
        _role("product", "Product", "pm", "product manager", "product owner", "po"),
        _role("qa", "QA", "qa", "test", "tester", "quality"),
        _role("support_tech", "Tech Support", "support", "helpdesk", "tier 1", "tier 2"),
    ),
    severity_rules=(
        _rule("TENSION_SIGNAL", "*", "outage", "critical"),
        _rule("RISK_INDICATOR", "*", "security", "critical"),
    ),
)

DEFAULT_INDUSTRY = "default"

INDUSTRY_LAYERS: dict[str, IndustryLayer] = {
    DEFAULT_INDUSTRY: IndustryLayer(),
    "legal": LEGAL,
    "healthcare": HEALTHCARE,
    "finance": FINANCE,
    "retail": RETAIL,
    "technology": TECHNOLOGY,
}
