"""Tests for page markup extraction and the pattern extractors.

Covers:
- Form and field recovery across HTML and the three server tag families
- Data-table and inline text output sections
- Frame hierarchy, navigation, cross-frame, hidden-field, session,
  URL-parameter and script-routing extraction
- Dependency edges and per-page deduplication
"""

from legacylens.core.page_parser import (
    CrossFrameInteractionExtractor,
    FrameAnalyzer,
    HiddenFieldStateExtractor,
    JsRoutingExtractor,
    MarkupAnalyzer,
    NavigationTargetExtractor,
    Page,
    SessionUsageExtractor,
    UrlParameterExtractor,
    analyze_page_source,
)
from legacylens.core.page_parser.dependency_graph import (
    FRAME_SOURCE,
    JS_ROUTING_HINT,
    NAVIGATION_TARGET,
)
from legacylens.core.page_parser.markup import NOTE_NO_BINDING, page_id_for
from legacylens.core.page_parser.models import Confidence, OutputSectionType
from legacylens.core.page_parser.url_parameters import parameter_names
from legacylens.core.page_parser.utils import normalize_expression, sanitize_attribute


# =============================================================================
# Tests: markup - forms and fields
# =============================================================================

ORDER_FORM = """
<html>
<head><title>  Order   Entry </title></head>
<body>
<form id="orderForm" action="/order/submit.do" method="post">
  <label for="customerId">Customer</label>
  <input type="text" id="customerId" name="customerId" maxlength="abc" required>
  <label>Notes <textarea name="notes"></textarea></label>
  <select name="status">
    <option value="open" selected>Open</option>
    <option value="closed">Closed</option>
  </select>
  <input type="hidden" name="token" value="${sessionScope.token}">
  <button type="submit">Save</button>
</form>
</body>
</html>
"""

TAGLIB_FORMS = """
<s:form action="saveProfile">
  <s:textfield name="email" label="Email" required="true"/>
  <s:password property="secret"/>
</s:form>
<form:form modelAttribute="customer" action="save.htm">
  <form:input path="phone" maxlength="12"/>
  <form:checkbox path="subscribed"/>
</form:form>
<html:form action="/legacy.do" method="post">
  <html:hidden property="legacyId"/>
  <html:submit value="Go"/>
</html:form>
"""


class TestMarkupForms:
    def test_title_collapsed(self):
        page = analyze_page_source(ORDER_FORM)
        assert page.title == "Order Entry"

    def test_form_attributes(self):
        page = analyze_page_source(ORDER_FORM)
        assert len(page.forms) == 1
        form = page.forms[0]
        assert form.form_id == "orderForm"
        assert form.action == "/order/submit.do"
        assert form.method == "POST"

    def test_fields_in_document_order(self):
        form = analyze_page_source(ORDER_FORM).forms[0]
        assert [f.name for f in form.fields] == ["customerId", "notes", "status", "token", None]
        assert [f.type for f in form.fields] == ["text", "textarea", "select", "hidden", "submit"]

    def test_label_for_and_enclosing_label(self):
        fields = analyze_page_source(ORDER_FORM).forms[0].fields
        assert fields[0].label == "Customer"
        assert fields[1].label == "Notes"

    def test_valueless_required_and_bad_maxlength(self):
        customer = analyze_page_source(ORDER_FORM).forms[0].fields[0]
        assert customer.required is True
        assert customer.max_length is None

    def test_select_options(self):
        status = analyze_page_source(ORDER_FORM).forms[0].fields[2]
        assert [(o.value, o.label, o.selected) for o in status.options] == [
            ("open", "Open", True),
            ("closed", "Closed", False),
        ]

    def test_binding_expression_captured_and_default_sanitized(self):
        token = analyze_page_source(ORDER_FORM).forms[0].fields[3]
        assert token.binding_expressions == ["${sessionScope.token}"]
        assert token.default_value is None

    def test_taglib_dialects(self):
        forms = analyze_page_source(TAGLIB_FORMS).forms
        assert [f.form_id for f in forms] == ["s:form", "form:form", "html:form"]
        assert forms[2].method == "POST"
        assert forms[1].method == "GET"

        struts2, spring, struts1 = (form.fields for form in forms)
        assert [(f.name, f.type) for f in struts2] == [("email", "text"), ("secret", "password")]
        assert struts2[0].label == "Email"
        assert struts2[0].required is True
        assert [(f.name, f.type) for f in spring] == [("phone", "text"), ("subscribed", "checkbox")]
        assert spring[0].max_length == 12
        assert [(f.name, f.type) for f in struts1] == [("legacyId", "hidden"), (None, "button")]

    def test_blank_data_required_falls_back_to_validate(self):
        page = analyze_page_source('<form action="a.do"><input name="zip" data-required="  " validate="true"></form>')
        assert page.forms[0].fields[0].required is True

    def test_expression_name_falls_back_to_property(self):
        page = analyze_page_source(
            '<html:form action="/a.do"><html:password name="${account}" property="acct"/></html:form>'
        )
        assert page.forms[0].fields[0].name == "acct"

    def test_button_type_lowercased(self):
        page = analyze_page_source('<form action="a.do"><button type=" SUBMIT ">Go</button></form>')
        assert page.forms[0].fields[0].type == "submit"

    def test_source_tag_recorded(self):
        forms = analyze_page_source(TAGLIB_FORMS).forms
        assert forms[0].fields[0].source_tag == "s:textfield"

    def test_page_without_forms(self):
        page = analyze_page_source("<html><body><p>Hello</p></body></html>")
        assert page.forms == []
        assert page.outputs == []
        assert page.title is None


# =============================================================================
# Tests: markup - output sections
# =============================================================================

LOAN_TABLE = """<%@ taglib prefix="c" uri="http://java.sun.com/jsp/jstl/core" %>
<html><head><title>Loans</title></head>
<body>
<table id="loans">
  <thead><tr><th>Loan ID</th><th>Amount</th></tr></thead>
  <tbody>
  <c:forEach items="${loanList}" var="loan">
    <tr><td>${loan.id}</td><td>${loan.amount}</td></tr>
  </c:forEach>
  </tbody>
</table>
</body></html>
"""

STATIC_TABLE = """
<table>
  <tr><th>Name</th><th>Status</th></tr>
  <tr><td>Fixed</td><td><img src="x.png" alt="${row.status}"></td></tr>
</table>
"""

ITERATE_WITHOUT_SOURCE = """
<table>
  <logic:iterate id="row">
    <tr><td>${row.code}</td></tr>
  </logic:iterate>
</table>
"""

TEXT_BLOCKS = """
<html><body>
<div class="greeting">Welcome back, ${user.firstName}!</div>
<p>Static paragraph</p>
<span>Balance: #{account.balance}</span>
<script>var x = "${ignored.value}";</script>
</body></html>
"""


class TestMarkupOutputs:
    def test_iterated_table(self):
        page = analyze_page_source(LOAN_TABLE)
        tables = [o for o in page.outputs if o.type == OutputSectionType.TABLE]
        assert len(tables) == 1
        section = tables[0]
        assert section.section_id == "loans"
        assert section.item_variable == "loan"
        assert section.items_expression == "loanList"
        assert [(f.name, f.label, f.binding_expression) for f in section.fields] == [
            ("id", "Loan ID", "loan.id"),
            ("amount", "Amount", "loan.amount"),
        ]

    def test_iterated_table_has_no_text_blocks(self):
        page = analyze_page_source(LOAN_TABLE)
        assert all(o.type == OutputSectionType.TABLE for o in page.outputs)

    def test_static_cell_and_descendant_attribute_binding(self):
        section = analyze_page_source(STATIC_TABLE).outputs[0]
        assert section.section_id == "table-1"
        fixed, status = section.fields
        assert fixed.binding_expression is None
        assert fixed.name == "Fixed"
        assert fixed.label == "Name"
        assert NOTE_NO_BINDING in fixed.notes
        assert status.binding_expression == "row.status"
        assert status.name == "status"
        assert status.label == "Status"

    def test_iteration_without_collection_noted(self):
        section = analyze_page_source(ITERATE_WITHOUT_SOURCE).outputs[0]
        assert section.item_variable == "row"
        assert section.items_expression is None
        assert section.notes

    def test_text_blocks(self):
        page = analyze_page_source(TEXT_BLOCKS)
        blocks = [o for o in page.outputs if o.type == OutputSectionType.TEXT_BLOCK]
        assert [b.section_id for b in blocks] == ["text-1", "text-2"]
        assert blocks[0].fields[0].name == "firstName"
        assert blocks[0].fields[0].binding_expression == "user.firstName"
        assert blocks[1].fields[0].binding_expression == "account.balance"

    def test_script_content_is_not_a_text_block(self):
        page = analyze_page_source(TEXT_BLOCKS)
        bindings = [f.binding_expression for o in page.outputs for f in o.fields]
        assert "ignored.value" not in bindings


class TestMarkupHelpers:
    def test_normalize_expression(self):
        assert normalize_expression("${ user.name }") == "user.name"
        assert normalize_expression("%{order.total}") == "order.total"
        assert normalize_expression("plain") == "plain"
        assert normalize_expression("${ }") is None

    def test_sanitize_attribute(self):
        assert sanitize_attribute("<%= x %>") == "x"
        assert sanitize_attribute("${only}") is None
        assert sanitize_attribute("  ") is None

    def test_page_id_relative_to_root(self, tmp_path):
        path = tmp_path / "web" / "orders" / "list.jsp"
        assert page_id_for(str(path), str(tmp_path)) == "web/orders/list.jsp"

    def test_unreadable_page_yields_empty_page(self, tmp_path):
        page = MarkupAnalyzer(str(tmp_path)).analyze_file(str(tmp_path / "missing.jsp"))
        assert page.page_id == "missing.jsp"
        assert page.forms == []
        assert page.outputs == []


# =============================================================================
# Tests: frames
# =============================================================================

FRAMESET_PAGE = """
<html>
<frameset rows="20%,80%">
  <frame name="header" src="header.jsp">
  <frame name="menu" src="menu.jsp">
  <frameset cols="30%,70%">
    <frame name="content" src="content.jsp">
  </frameset>
</frameset>
</html>
"""

NAMED_FRAMESET_PAGE = """
<frameset rows="*" name="main">
  <frameset cols="*">
    <frame name="body" src="body.jsp">
  </frameset>
</frameset>
"""

IFRAME_PAGE = """
<html><body>
<iframe src="inner.jsp"></iframe>
</body></html>
"""

BLANK_NAMED_FRAMESET_PAGE = """
<frameset rows="*" name="  ">
  <frameset cols="*" id=" ">
    <frame name=" " id="" src="body.jsp">
  </frameset>
</frameset>
"""


class TestFrames:
    def test_nested_frameset_depths(self):
        layout = FrameAnalyzer().extract_source(FRAMESET_PAGE)
        assert [(f.frame_name, f.depth) for f in layout.frames] == [
            ("header", 0),
            ("menu", 0),
            ("content", 1),
        ]
        assert layout.frames[2].parent_frame_name == "FRAMESET@0"
        assert layout.frames[0].parent_frame_name is None
        assert all(f.tag == "FRAME" for f in layout.frames)
        assert all(f.confidence == Confidence.HIGH for f in layout.frames)

    def test_named_container_is_parent(self):
        layout = FrameAnalyzer().extract_source(NAMED_FRAMESET_PAGE)
        assert layout.frames[0].parent_frame_name == "main"
        assert layout.frames[0].depth == 1

    def test_blank_names_are_absent(self):
        layout = FrameAnalyzer().extract_source(BLANK_NAMED_FRAMESET_PAGE)
        assert layout.frames[0].frame_name is None
        assert layout.frames[0].parent_frame_name == "FRAMESET@0"
        assert layout.frames[0].depth == 1

    def test_frameset_page_flag(self):
        page = analyze_page_source(FRAMESET_PAGE)
        assert page.frameset_page is True
        assert [f.source for f in page.frames] == ["header.jsp", "menu.jsp", "content.jsp"]

    def test_iframe_only_page(self):
        page = analyze_page_source(IFRAME_PAGE)
        assert page.frameset_page is True
        assert page.frames[0].tag == "IFRAME"
        assert page.frames[0].frame_name is None

    def test_plain_page_is_not_layout(self):
        page = analyze_page_source("<html><body>Hi</body></html>")
        assert page.frames == []
        assert page.frameset_page is False

    def test_unreadable_file(self, tmp_path):
        page = Page(page_id="gone.jsp", source_path=str(tmp_path / "gone.jsp"))
        page.frameset_page = True
        FrameAnalyzer().analyze([page])
        assert page.frames == []
        assert page.frameset_page is False


# =============================================================================
# Tests: navigation and routing
# =============================================================================

NAVIGATION_PAGE = """
<a href="orders/list.jsp?status=open">Orders</a>
<a href="http://example.com">External</a>
<script>
  window.location = "home.jsp";
  var next = 'detail.jsp';
</script>
"""

CROSS_FRAME_PAGE = """
<script>
parent.content.location = 'orders.jsp';
window.parent.location = "login.jsp";
top.frames['menu'].location = "menu.jsp?x=1";
</script>
"""

ROUTING_PAGE = """
<script>
window.location.href = 'home.jsp';
document.location = "logout.jsp";
document.forms[0].action = "save.jsp";
</script>
"""


class TestNavigation:
    def test_sources(self):
        targets = NavigationTargetExtractor().extract_source(NAVIGATION_PAGE)
        pairs = {(t.target_page, t.source_pattern) for t in targets}
        assert ("orders/list.jsp?status=open", "href") in pairs
        assert ("home.jsp", "script-location") in pairs
        assert ("detail.jsp", "js-string") in pairs
        assert all("example.com" not in t.target_page for t in targets)

    def test_snippets_are_single_line_and_bounded(self):
        targets = NavigationTargetExtractor().extract_source(NAVIGATION_PAGE)
        for target in targets:
            assert "\n" not in target.snippet
            assert len(target.snippet) <= 160

    def test_identical_links_deduplicated(self):
        raw = '<a href="a.jsp">A</a>\n<a href="a.jsp">A</a>'
        hrefs = [t for t in NavigationTargetExtractor().extract_source(raw) if t.source_pattern == "href"]
        assert len(hrefs) == 1


class TestCrossFrame:
    def test_idioms(self):
        interactions = CrossFrameInteractionExtractor().extract_source(CROSS_FRAME_PAGE)
        assert [(i.from_frame, i.to_page) for i in interactions] == [
            ("content", "orders.jsp"),
            ("window.parent", "login.jsp"),
            ("menu", "menu.jsp?x=1"),
        ]
        assert all(i.interaction_type == "locationChange" for i in interactions)
        assert all(i.confidence == Confidence.MEDIUM for i in interactions)

    def test_no_interactions(self):
        assert CrossFrameInteractionExtractor().extract_source("<p>none</p>") == []


class TestJsRouting:
    def test_hints(self):
        hints = JsRoutingExtractor().extract_source(ROUTING_PAGE)
        assert [(h.target_page, h.source_pattern) for h in hints] == [
            ("home.jsp", "window.location.href"),
            ("logout.jsp", "document.location"),
            ("save.jsp", "document.forms.action"),
        ]

    def test_non_page_targets_ignored(self):
        assert JsRoutingExtractor().extract_source('<script>location = "/api/run";</script>') == []


# =============================================================================
# Tests: hidden fields, session, URL parameters
# =============================================================================

HIDDEN_PAGE = """
<input type="HIDDEN" name="orderId" value="${order.id}">
<s:hidden name="mode" value="edit"/>
<html:hidden property="token"/>
<input type="hidden" value="nameless">
<input type="HIDDEN" name="orderId" value="${order.id}">
<input type="text" name="visible">
"""

SESSION_PAGE = """
<p>${sessionScope.user}</p>
<% Object cart = session.getAttribute("cart"); %>
<% String role = (String) request.getSession().getAttribute("role"); %>
<p>${sessionScope.user}</p>
"""

PARAMETER_PAGE = """
<a href="list.jsp?page=2&sort=name">Next</a>
<form action="search.do?mode=full"></form>
<script>location.href = "detail.jsp?id=7";</script>
"""


class TestHiddenFields:
    def test_hidden_controls(self):
        hidden = HiddenFieldStateExtractor().extract_source(HIDDEN_PAGE)
        assert [h.name for h in hidden] == ["orderId", "mode", "token"]

    def test_values_and_expressions(self):
        order_id, mode, token = HiddenFieldStateExtractor().extract_source(HIDDEN_PAGE)
        assert order_id.default_value == "${order.id}"
        assert order_id.expression == "${order.id}"
        assert mode.default_value == "edit"
        assert mode.expression is None
        assert token.default_value is None


class TestSessionUsage:
    def test_keys_and_sources(self):
        deps = SessionUsageExtractor().extract_source(SESSION_PAGE)
        assert [(d.key, d.source) for d in deps] == [
            ("user", "EL"),
            ("cart", "session.getAttribute"),
            ("role", "request.getSession().getAttribute"),
        ]


class TestUrlParameters:
    def test_parameter_names(self):
        assert parameter_names("a.jsp?x=1&y=2") == ["x", "y"]
        assert parameter_names("a.jsp") == []
        assert parameter_names("") == []

    def test_sources(self):
        params = UrlParameterExtractor().extract_source(PARAMETER_PAGE)
        assert {p.name for p in params} == {"page", "sort", "mode", "id"}
        pairs = {(p.name, p.source) for p in params}
        assert ("page", "href") in pairs
        assert ("mode", "form-action") in pairs
        assert ("id", "script-location") in pairs
        assert ("id", "js-string") in pairs


# =============================================================================
# Tests: dependency graph
# =============================================================================

class TestDependencyGraph:
    def test_edges_from_frames(self):
        page = analyze_page_source(FRAMESET_PAGE, page_id="layout.jsp")
        frame_edges = [d for d in page.dependencies if d.dependency_type == FRAME_SOURCE]
        assert [d.to_page for d in frame_edges] == ["header.jsp", "menu.jsp", "content.jsp"]
        assert all(d.from_page == "layout.jsp" for d in frame_edges)

    def test_edges_from_routing(self):
        page = analyze_page_source(ROUTING_PAGE)
        routed = {d.to_page for d in page.dependencies if d.dependency_type == JS_ROUTING_HINT}
        assert routed == {"home.jsp", "logout.jsp", "save.jsp"}

    def test_edges_deduplicated(self):
        raw = '<a href="a.jsp">A</a>\n<p>text</p>\n<a href="a.jsp">A</a>'
        page = analyze_page_source(raw)
        nav_edges = [
            d for d in page.dependencies
            if d.dependency_type == NAVIGATION_TARGET and d.to_page == "a.jsp"
        ]
        assert len(nav_edges) == 1

    def test_frames_without_source_skipped(self):
        page = analyze_page_source('<frameset><frame name="blank"></frameset>')
        assert page.frames[0].source is None
        assert page.dependencies == []
