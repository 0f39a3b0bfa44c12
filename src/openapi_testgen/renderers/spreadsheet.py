"""TestIT-compatible test-case workbook.

One sheet, one block of rows per scenario: a header row carrying the case
metadata, one row per precondition, then a single row holding the steps,
the expected results and the test data.
"""

import json
import re
from datetime import datetime
from http import HTTPStatus
from io import BytesIO

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from openapi_testgen.generator.model import GeneratedFile, TestModel, TestScenario, TestType
from openapi_testgen.parser.base import EndpointInfo, HttpMethod
from openapi_testgen.renderers.base import NO_CONTENT_STATUSES, Renderer, as_text, body_assertions, needs_auth, slugify

HEADERS = [
    "ID",
    "Location",
    "Name",
    "Automated",
    "Preconditions",
    "Steps",
    "Postconditions",
    "Expected result",
    "Test data",
    "Comments",
    "Iterations",
    "Priority",
    "Status",
    "Created",
    "Author",
    "Duration",
    "Tag",
]
COLUMN = {header: index for index, header in enumerate(HEADERS, start=1)}

PRIORITIES = {
    TestType.POSITIVE: "High",
    TestType.NEGATIVE: "Medium",
    TestType.EDGE: "Low",
}

ACTIONS = {
    HttpMethod.GET: "Get",
    HttpMethod.POST: "Create",
    HttpMethod.PUT: "Update",
    HttpMethod.PATCH: "Partially update",
    HttpMethod.DELETE: "Delete",
}

# Scenario name fragment -> case title, first match wins
CASE_TITLES = [
    ("not_found", "resource not found"),
    ("empty_body", "empty request body"),
    ("unauthorized", "without authorization"),
    ("invalid_enum", "invalid enum value"),
    ("below_min", "value below minimum"),
    ("above_max", "value above maximum"),
    ("too_short", "string too short"),
    ("too_long", "string too long"),
    ("at_min", "value at minimum"),
    ("at_max", "value at maximum"),
    ("min_length", "string at minimum length"),
    ("max_length", "string at maximum length"),
]

AUTHOR = "openapi-testgen"
STATUS = "Ready"
DURATION = "0h 1m 0s"
MAX_COLUMN_WIDTH = 50
MAX_SHEET_TITLE = 31

_SHEET_UNSAFE = re.compile(r"[\[\]*?/\\:]")
_THIN = Side(style="thin")
HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(fill_type="solid", fgColor="D9D9D9")
HEADER_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
WRAPPED = Alignment(wrap_text=True, vertical="top")


def _text(value) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return as_text(value)


def _created(generated_at: str) -> str:
    try:
        moment = datetime.fromisoformat(generated_at)
    except ValueError:
        return generated_at
    return f"{moment.month}/{moment.day}/{moment.year} {moment.hour}:{moment.minute:02d}:{moment.second:02d}"


def resource_name(endpoint: EndpointInfo) -> str:
    segments = [s for s in endpoint.path.split("/") if s and not s.startswith("{")]
    return segments[-1] if segments else "resource"


def case_name(scenario: TestScenario, endpoint: EndpointInfo) -> str:
    """Human-readable title, e.g. ``Create pets: missing required field name``."""
    subject = f"{ACTIONS.get(endpoint.method, endpoint.method.value)} {resource_name(endpoint)}"
    for fragment, title in CASE_TITLES:
        if fragment in scenario.name:
            return f"{subject}: {title}"
    if "missing_" in scenario.name:
        field = scenario.name.split("missing_", 1)[1].replace("_", " ")
        return f"{subject}: missing required field {field}"
    if scenario.type is TestType.NEGATIVE:
        return f"{subject}: negative case"
    return endpoint.summary or subject


def case_tags(scenario: TestScenario, endpoint: EndpointInfo) -> str:
    tags = [scenario.type.value.title(), endpoint.method.value]
    if endpoint.tags:
        tags.append(endpoint.tags[0])
    return ", ".join(tags)


def preconditions(scenario: TestScenario, endpoint: EndpointInfo) -> list[str]:
    result = ["API server is running and reachable"]
    if scenario.type is TestType.POSITIVE:
        if endpoint.method is HttpMethod.GET:
            result.append("Requested resource exists" if endpoint.path_params else "Test data exists")
        elif endpoint.method in (HttpMethod.PUT, HttpMethod.PATCH):
            result.append("Resource to update exists")
        elif endpoint.method is HttpMethod.DELETE:
            result.append("Resource to delete exists")
    if needs_auth(endpoint, scenario):
        result.append("User is authorized")
    return result


def _pairs(values: dict) -> str:
    return ", ".join(f"{key} = {_text(value)}" for key, value in values.items())


def steps(scenario: TestScenario, endpoint: EndpointInfo) -> list[str]:
    request = scenario.request
    result = []
    if request.path_params:
        result.append(f"Prepare path parameters: {_pairs(request.path_params)}")
    if request.query_params:
        result.append(f"Prepare query parameters: {_pairs(request.query_params)}")
    if request.headers:
        result.append(f"Prepare headers: {_pairs(request.headers)}")
    if request.form:
        result.append(f"Prepare form fields: {_pairs(request.form)}")
    elif request.has_body and request.body is not None:
        if request.body == {}:
            result.append("Prepare the request with an empty body {}")
        else:
            result.append("Prepare the request with the body from the test data")
    result.append(f"Send {endpoint.method.value} request to {endpoint.path}")
    result.append("Check the response")
    return result


def expected_results(scenario: TestScenario) -> list[str]:
    status = scenario.expected.status_code
    try:
        result = [f"Status code: {status} {HTTPStatus(status).phrase}"]
    except ValueError:
        result = [f"Status code: {status}"]

    checks = [a.description for a in body_assertions(scenario)]
    result.extend(checks)
    if not checks and scenario.type is TestType.POSITIVE and status not in NO_CONTENT_STATUSES:
        result.append("Response body matches the schema")
    return result


def case_data(scenario: TestScenario) -> str:
    request = scenario.request
    data = [f"{k} = {_text(v)}" for k, v in {**request.path_params, **request.query_params}.items()]
    if request.form:
        data.extend(f"{k} = {_text(v)}" for k, v in request.form.items())
    elif isinstance(request.body, dict):
        data.extend(f"{k} = {_text(v)}" for k, v in request.body.items())
    elif request.body is not None:
        data.append(f"body = {_text(request.body)}")
    return "; ".join(data)


class SpreadsheetRenderer(Renderer):
    """Writes ``<title>_TestCases.xlsx`` in the TestIT import layout."""

    name = "xlsx"
    language = "xlsx"

    def render(self, model: TestModel) -> list[GeneratedFile]:
        title = model.meta.spec_title
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = _SHEET_UNSAFE.sub("_", f"Project_{title}")[:MAX_SHEET_TITLE]

        for column, header in enumerate(HEADERS, start=1):
            cell = sheet.cell(row=1, column=column, value=header)
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.border = HEADER_BORDER

        row = 2
        number = 1
        created = _created(model.meta.generated_at)
        for test in model.endpoints:
            endpoint = test.endpoint
            location = f"{title} / {endpoint.tags[0] if endpoint.tags else 'API'}"
            for scenario in test.scenarios:
                self._put(sheet, row, {
                    "ID": f"TC-{number:03d}",
                    "Location": location,
                    "Name": case_name(scenario, endpoint),
                    "Automated": "Yes",
                    "Priority": PRIORITIES[scenario.type],
                    "Status": STATUS,
                    "Created": created,
                    "Author": AUTHOR,
                    "Duration": DURATION,
                    "Tag": case_tags(scenario, endpoint),
                })
                row += 1
                for precondition in preconditions(scenario, endpoint):
                    self._put(sheet, row, {"Preconditions": precondition})
                    row += 1
                self._put(sheet, row, {
                    "Steps": "\n".join(steps(scenario, endpoint)),
                    "Expected result": "\n".join(expected_results(scenario)),
                    "Test data": case_data(scenario),
                }, alignment=WRAPPED)
                row += 1
                number += 1

        self._fit_columns(sheet)

        buffer = BytesIO()
        workbook.save(buffer)
        return [self._file(f"{slugify(title)}_TestCases.xlsx", buffer.getvalue())]

    @staticmethod
    def _put(sheet: Worksheet, row: int, values: dict[str, str], alignment: Alignment | None = None) -> None:
        for header, value in values.items():
            if not value:
                continue
            cell = sheet.cell(row=row, column=COLUMN[header], value=ILLEGAL_CHARACTERS_RE.sub("", value))
            if alignment is not None:
                cell.alignment = alignment

    @staticmethod
    def _fit_columns(sheet: Worksheet) -> None:
        for column, header in enumerate(HEADERS, start=1):
            widest = len(header)
            for (value,) in sheet.iter_rows(min_col=column, max_col=column, values_only=True):
                if value:
                    widest = max(widest, *(len(line) for line in str(value).splitlines()))
            sheet.column_dimensions[get_column_letter(column)].width = min(widest + 2, MAX_COLUMN_WIDTH)
