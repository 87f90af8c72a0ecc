"""Tests for the correlation and confidence engine.

Covers:
- Page and action name derivation
- Controller candidates from form actions, naming patterns and fallbacks
- Backing-class resolution and field enrichment
- Confidence scoring, labels and the missing-mapping flag
"""

import pytest

from legacylens.core.config import AnalyzerConfig
from legacylens.core.correlation import (
    CorrelationEngine,
    apply_pattern,
    compute_confidence_score,
    confidence_label,
    derive_base_names,
    normalize_action,
    select_best_candidate,
)
from legacylens.core.correlation.engine import NOTE_NO_BACKING_BEAN
from legacylens.core.correlation.naming import handler_base, simple_name_matches, split_tokens
from legacylens.core.java_metadata import (
    FieldMetadata,
    FieldMetadataBuilder,
    JavaMetadataAnalyzer,
    MetadataIndex,
    MetadataIndexBuilder,
)
from legacylens.core.page_parser.models import (
    Confidence,
    ControllerCandidate,
    Field,
    Form,
    Page,
)


# ── Fixtures ──────────────────────────────────────────────────────────


def _make_config(**overrides) -> AnalyzerConfig:
    config = AnalyzerConfig(root_dir=".")
    for key, value in overrides.items():
        setattr(config, key, value)
    return config.normalize()


def _make_page(page_id="customer.jsp", forms=None) -> Page:
    return Page(page_id=page_id, source_path=page_id, forms=forms or [])


def _make_form(action=None, *field_names) -> Form:
    return Form(form_id="f", action=action, fields=[Field(name=n) for n in field_names])


def _make_index(fields=None, forms=(), actions=(), controllers=()) -> MetadataIndex:
    builder = MetadataIndexBuilder()
    for class_name, members in (fields or {}).items():
        builders = {}
        for name, (field_type, constraints, attributes) in members.items():
            b = FieldMetadataBuilder(class_name, name).set_field_type(field_type)
            for constraint in constraints:
                b.add_constraint(constraint)
            for key, value in attributes.items():
                b.put_attribute(key, value)
            builders[name] = b
        builder.add_fields(class_name, builders)
    for name in forms:
        builder.add_struts_form(name)
    for name in actions:
        builder.add_struts_action(name)
    for name in controllers:
        builder.add_controller(name)
    return builder.build()


CUSTOMER_FORM_FIELDS = {
    "com.acme.CustomerForm": {
        "customerId": ("String", ["required", "size"], {"required": True, "maxLength": 10}),
        "email": ("String", [], {}),
    },
}


# =============================================================================
# Tests: naming
# =============================================================================

class TestNaming:
    def test_split_tokens(self):
        assert split_tokens("orderHistory") == ["order", "history"]
        assert split_tokens("order_history-list") == ["order", "history", "list"]

    def test_base_names_for_nested_page(self):
        assert derive_base_names("admin/orderHistory.jsp") == [
            "AdminOrderHistory", "OrderHistory", "History",
        ]

    def test_base_names_for_single_page(self):
        assert derive_base_names("customer.jsp") == ["Customer"]

    def test_base_names_for_blank_page(self):
        assert derive_base_names("") == ["page"]
        assert derive_base_names(None) == ["page"]

    def test_normalize_action(self):
        assert normalize_action("/order/submit.do?x=1") == "ordersubmit"
        assert normalize_action("saveCustomer.action") == "savecustomer"
        assert normalize_action("/") is None
        assert normalize_action(None) is None

    def test_apply_pattern(self):
        assert apply_pattern("%sAction", "Order") == "OrderAction"
        assert apply_pattern("Handler", "Order") == "OrderHandler"

    def test_handler_base(self):
        assert handler_base("com.acme.OrderController") == "Order"
        assert handler_base("OrderDispatchAction") == "Order"
        assert handler_base("OrderAction") == "Order"
        assert handler_base("Action") == "Action"

    def test_simple_name_matches(self):
        assert simple_name_matches("com.acme.OrderAction", "order", ("action",))
        assert simple_name_matches("com.acme.OrderDispatchAction", "order", ("action",))
        assert simple_name_matches("com.acme.Order", "order", ("action",))
        assert not simple_name_matches("com.acme.InvoiceAction", "order", ("action",))


# =============================================================================
# Tests: confidence scoring
# =============================================================================

class TestConfidenceScore:
    def test_baseline(self):
        assert compute_confidence_score(0, 0, 0, 0, 0) == pytest.approx(0.2)

    def test_maximum_is_capped(self):
        assert compute_confidence_score(1, 4, 1, 4, 1) == pytest.approx(1.0)

    def test_partial_enrichment(self):
        assert compute_confidence_score(1, 2, 0, 1, 0) == pytest.approx(0.55)

    def test_bounds(self):
        for forms in (0, 3):
            for fields in (0, 1, 5):
                for enriched in range(fields + 1):
                    score = compute_confidence_score(forms, fields, 1, enriched, 2)
                    assert 0.0 <= score <= 1.0

    def test_more_enrichment_never_lowers_score(self):
        scores = [compute_confidence_score(1, 5, 0, e, 1) for e in range(6)]
        assert scores == sorted(scores)

    def test_labels(self):
        assert confidence_label(0.2, Confidence.HIGH) == "HIGH"
        assert confidence_label(0.8, Confidence.LOW) == "HIGH"
        assert confidence_label(0.2, Confidence.MEDIUM) == "MEDIUM"
        assert confidence_label(0.5, Confidence.LOW) == "MEDIUM"
        assert confidence_label(0.4, Confidence.LOW) == "LOW"

    def test_confidence_only_moves_up(self):
        candidate = ControllerCandidate("com.acme.OrderAction", Confidence.HIGH)
        candidate.promote(Confidence.LOW)
        assert candidate.confidence == Confidence.HIGH
        candidate = ControllerCandidate("OrderAction")
        candidate.promote(Confidence.MEDIUM)
        assert candidate.confidence == Confidence.MEDIUM

    def test_best_confidence(self):
        assert Confidence.best([]) == Confidence.LOW
        assert Confidence.best([Confidence.LOW, Confidence.HIGH, Confidence.MEDIUM]) == Confidence.HIGH


# =============================================================================
# Tests: controller candidates
# =============================================================================

class TestControllerCandidates:
    def test_fallback_candidates_without_metadata(self):
        page = _make_page("orderHistory.jsp")
        CorrelationEngine(_make_config(), MetadataIndex.empty()).correlate_page(page)
        names = page.controller_names()
        assert "OrderHistoryAction" in names
        assert "OrderHistoryController" in names
        assert all(c.confidence == Confidence.LOW for c in page.controller_candidates)
        assert any("Heuristic controller candidate OrderHistoryAction" in n for n in page.notes)

    def test_configured_package_match_is_high(self):
        index = _make_index(actions=["com.acme.web.action.OrderHistoryAction"])
        config = _make_config(struts_action_packages=["com.acme.web.action"])
        page = _make_page("orderHistory.jsp")
        CorrelationEngine(config, index).correlate_page(page)
        first = page.controller_candidates[0]
        assert first.name == "com.acme.web.action.OrderHistoryAction"
        assert first.confidence == Confidence.HIGH
        assert page.confidence_label == "HIGH"
        assert page.missing_mappings is False

    def test_fallbacks_use_configured_packages(self):
        config = _make_config(spring_controller_packages=["com.acme.web"])
        page = _make_page("orderHistory.jsp")
        CorrelationEngine(config, MetadataIndex.empty()).correlate_page(page)
        names = page.controller_names()
        assert "com.acme.web.OrderHistoryController" in names
        assert "OrderHistoryController" in names

    def test_match_outside_configured_packages_is_medium(self):
        index = _make_index(actions=["com.other.OrderHistoryAction"])
        config = _make_config(struts_action_packages=["com.acme"])
        page = _make_page("orderHistory.jsp")
        CorrelationEngine(config, index).correlate_page(page)
        assert page.controller_candidates[0].name == "com.other.OrderHistoryAction"
        assert page.controller_candidates[0].confidence == Confidence.MEDIUM

    def test_form_action_match(self):
        index = _make_index(actions=["com.acme.OrderHistoryAction"])
        page = _make_page("search.jsp", forms=[_make_form("/orderHistory.do")])
        CorrelationEngine(_make_config(), index).correlate_page(page)
        assert page.controller_candidates[0].name == "com.acme.OrderHistoryAction"
        assert page.controller_candidates[0].confidence == Confidence.MEDIUM
        assert "Matched controller com.acme.OrderHistoryAction from form action /orderHistory.do" in page.notes
        assert page.confidence_label in ("MEDIUM", "HIGH")

    def test_candidates_sorted_by_confidence(self):
        index = _make_index(controllers=["com.acme.CustomerController"])
        page = _make_page("customer.jsp")
        CorrelationEngine(_make_config(), index).correlate_page(page)
        levels = [c.confidence.value for c in page.controller_candidates]
        assert levels == sorted(levels, reverse=True)
        assert page.controller_candidates[0].name == "com.acme.CustomerController"

    def test_existing_candidates_kept(self):
        page = _make_page("customer.jsp")
        page.controller_candidates = [ControllerCandidate("com.legacy.CustomerServlet", Confidence.HIGH)]
        CorrelationEngine(_make_config(), MetadataIndex.empty()).correlate_page(page)
        assert page.controller_candidates[0].name == "com.legacy.CustomerServlet"
        assert page.controller_candidates[0].confidence == Confidence.HIGH

    def test_fallback_cap(self):
        page = _make_page("orderHistory.jsp")
        config = _make_config(max_fallback_candidates=1)
        CorrelationEngine(config, MetadataIndex.empty()).correlate_page(page)
        assert page.controller_names() == ["OrderHistoryAction"]
        assert page.backing_bean_candidates == ["OrderHistoryForm"]


# =============================================================================
# Tests: backing classes and field enrichment
# =============================================================================

class TestFieldEnrichment:
    def test_required_and_size_merged(self):
        index = _make_index(fields=CUSTOMER_FORM_FIELDS, forms=["com.acme.CustomerForm"])
        form = _make_form("/customer/save.do", "customerId")
        page = _make_page("customer.jsp", forms=[form])
        CorrelationEngine(_make_config(), index).correlate_page(page)

        assert form.backing_bean_class == "com.acme.CustomerForm"
        field = form.fields[0]
        assert field.required is True
        assert field.max_length == 10
        assert field.constraints == ["required", "size"]
        assert field.java_type == "String"
        assert field.source_bean_class == "com.acme.CustomerForm"
        assert field.source_bean_property == "customerId"
        assert "com.acme.CustomerForm" in page.backing_bean_candidates
        assert page.missing_mappings is False

    def test_bean_from_controller_name(self):
        index = _make_index(
            fields={"com.acme.OrderForm": {"quantity": ("int", ["min"], {"min": 1})}},
            actions=["com.acme.OrderAction"],
        )
        form = _make_form("/submit.do", "quantity")
        page = _make_page("order.jsp", forms=[form])
        CorrelationEngine(_make_config(), index).correlate_page(page)
        assert form.backing_bean_class == "com.acme.OrderForm"
        assert form.fields[0].min_value == "1"

    def test_bean_by_action_name(self):
        index = _make_index(fields={"com.acme.PaymentForm": {"amount": ("BigDecimal", [], {})}})
        form = _make_form("/payment.do", "unrelated")
        page = _make_page("checkout.jsp", forms=[form])
        CorrelationEngine(_make_config(), index).correlate_page(page)
        assert form.backing_bean_class == "com.acme.PaymentForm"

    def test_unmatched_field_noted(self):
        index = _make_index(fields=CUSTOMER_FORM_FIELDS)
        form = _make_form("/customer/save.do", "customerId", "nickname")
        page = _make_page("customer.jsp", forms=[form])
        CorrelationEngine(_make_config(), index).correlate_page(page)
        assert "No Java metadata found for field nickname" in form.notes
        assert form.fields[1].source_bean_class is None
        assert form.fields[1].constraints == []

    def test_form_without_bean(self):
        form = _make_form("/x.do", "a")
        page = _make_page("x.jsp", forms=[form])
        CorrelationEngine(_make_config(), MetadataIndex.empty()).correlate_page(page)
        assert form.backing_bean_class is None
        assert form.notes == ["No Java metadata found for field a"]

    def test_empty_form_gets_backing_note(self):
        form = _make_form("/x.do")
        page = _make_page("x.jsp", forms=[form])
        CorrelationEngine(_make_config(), MetadataIndex.empty()).correlate_page(page)
        assert form.notes == [NOTE_NO_BACKING_BEAN]

    def test_first_server_value_wins(self):
        field = Field(name="code")
        assert field.enrich("max_length", 5) is True
        assert field.enrich("max_length", 9) is False
        assert field.enrich("pattern", None) is False
        assert field.max_length == 5
        assert field.pattern is None

    def test_select_best_candidate(self):
        plain = FieldMetadata("com.acme.A", "code", "String")
        constrained = FieldMetadata("com.acme.B", "code", "String", ("required", "size"))
        other = FieldMetadata("com.acme.C", "other", "String")
        assert select_best_candidate([plain, constrained, other], "code") is constrained
        assert select_best_candidate([other, plain], "code") is plain
        assert select_best_candidate([other, plain], None) is other
        assert select_best_candidate([plain, constrained], None) is constrained

    def test_nameless_field_not_enriched_from_bean(self):
        index = _make_index(fields=CUSTOMER_FORM_FIELDS, forms=["com.acme.CustomerForm"])
        form = _make_form("/customer/save.do", "customerId")
        form.fields.append(Field(type="submit"))
        page = _make_page("customer.jsp", forms=[form])
        counters = CorrelationEngine(_make_config(), index).correlate_page(page)

        assert form.backing_bean_class == "com.acme.CustomerForm"
        button = form.fields[1]
        assert button.source_bean_class is None
        assert button.required is False
        assert button.max_length is None
        assert button.constraints == []
        assert counters.enriched_fields == 1


# =============================================================================
# Tests: whole-page outcomes
# =============================================================================

class TestPageOutcomes:
    def test_missing_mapping(self):
        page = _make_page("reports/summary.jsp")
        CorrelationEngine(_make_config(), MetadataIndex.empty()).correlate_page(page)
        assert page.missing_mappings is True
        assert page.confidence_label in ("LOW", "MEDIUM")
        assert 0.0 <= page.confidence_score <= 1.0

    def test_correlate_returns_counters(self):
        index = _make_index(fields=CUSTOMER_FORM_FIELDS)
        page = _make_page("customer.jsp", forms=[_make_form("/c.do", "customerId", "nickname")])
        results = CorrelationEngine(_make_config(), index).correlate([page])
        counters = results["customer.jsp"]
        assert counters.form_count == 1
        assert counters.total_fields == 2
        assert counters.enriched_fields == 1
        assert counters.confidence_score == page.confidence_score

    def test_analyzed_java_drives_enrichment(self):
        source = '''
package com.acme;

public class LoginForm extends ActionForm {
    @NotEmpty
    @Size(max = 32)
    private String username;
}
'''
        builder = MetadataIndexBuilder()
        JavaMetadataAnalyzer().analyze_source(source, builder)
        form = _make_form("/login.do", "username")
        page = _make_page("login.jsp", forms=[form])
        CorrelationEngine(_make_config(), builder.build()).correlate_page(page)
        assert form.backing_bean_class == "com.acme.LoginForm"
        assert form.fields[0].required is True
        assert form.fields[0].max_length == 32

    def test_fresh_runs_are_identical(self):
        index = _make_index(fields=CUSTOMER_FORM_FIELDS, actions=["com.acme.CustomerAction"])

        def run():
            page = _make_page("customer.jsp", forms=[_make_form("/customer.do", "customerId")])
            CorrelationEngine(_make_config(), index).correlate_page(page)
            return page

        first, second = run(), run()
        assert first == second
