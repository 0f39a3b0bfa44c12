"""Maps framework names to renderers."""

from openapi_testgen.generator.model import Framework
from openapi_testgen.renderers.base import Renderer
from openapi_testgen.renderers.postman import PostmanRenderer
from openapi_testgen.renderers.pytest_renderer import PytestRenderer
from openapi_testgen.renderers.restassured import RestAssuredRenderer
from openapi_testgen.renderers.spreadsheet import SpreadsheetRenderer
from openapi_testgen.renderers.testcases import TestCaseRenderer

RENDERERS: dict[Framework, type[Renderer]] = {
    Framework.PYTEST: PytestRenderer,
    Framework.REST_ASSURED: RestAssuredRenderer,
    Framework.POSTMAN: PostmanRenderer,
    Framework.TESTCASES: TestCaseRenderer,
    Framework.XLSX: SpreadsheetRenderer,
}


def get_renderer(framework: Framework | str) -> Renderer:
    """Raises ValueError for an unknown framework name."""
    try:
        key = Framework(framework)
    except ValueError:
        choices = ", ".join(f.value for f in Framework)
        raise ValueError(f"Unknown framework '{framework}'. Choose one of: {choices}") from None
    return RENDERERS[key]()
