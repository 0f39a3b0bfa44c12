"""REST-Assured + JUnit 5 renderer: one test class per tag and a Maven pom."""

import json
from xml.sax.saxutils import escape

from openapi_testgen.generator.model import (
    Assertion,
    EndpointTest,
    GeneratedFile,
    Matcher,
    TestModel,
    TestScenario,
)
from openapi_testgen.parser.base import FieldType
from openapi_testgen.renderers.base import (
    Renderer,
    auth_style,
    body_assertions,
    class_name,
    group_by_tag,
    needs_auth,
    placeholder_name,
    slugify,
)

_JAVA_TYPES = {
    FieldType.STRING: "String.class",
    FieldType.INTEGER: "Integer.class",
    FieldType.NUMBER: "Number.class",
    FieldType.BOOLEAN: "Boolean.class",
    FieldType.ARRAY: "java.util.List.class",
    FieldType.OBJECT: "java.util.Map.class",
    FieldType.NULL: "Object.class",
    FieldType.ANY: "Object.class",
}


def java_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def java_literal(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # JSON decimals are read back as Float
        return str(int(value)) if value.is_integer() else f"{value}f"
    if value is None:
        return "null"
    return java_string(str(value))


def gpath(path: str) -> str:
    return path or "$"


def full_match(pattern: str) -> str:
    """Hamcrest's matchesPattern needs the whole string to match."""
    if pattern.endswith("$"):
        return pattern
    return f"{pattern}.*"


def hamcrest(assertion: Assertion) -> str:
    value = assertion.value
    matcher = Matcher(assertion.matcher)

    if matcher is Matcher.NOT_NULL:
        return "notNullValue()"
    if matcher is Matcher.IS_NULL:
        return "nullValue()"
    if matcher is Matcher.EQUALS:
        return f"equalTo({java_literal(value)})"
    if matcher is Matcher.NOT_EQUALS:
        return f"not(equalTo({java_literal(value)}))"
    if matcher is Matcher.CONTAINS:
        return f"containsString({java_string(value)})"
    if matcher is Matcher.MATCHES_PATTERN:
        return f"matchesPattern({java_string('(?s)' + full_match(value))})"
    if matcher is Matcher.ONE_OF:
        return f"hasToString(oneOf({', '.join(java_string(v) for v in value)}))"
    if matcher is Matcher.IS_TYPE:
        return f"instanceOf({_JAVA_TYPES[FieldType(value)]})"
    if matcher is Matcher.NOT_EMPTY:
        return "not(empty())"
    if matcher is Matcher.IS_EMPTY:
        return "empty()"
    if matcher is Matcher.GREATER_THAN:
        return f"greaterThan({java_literal(value)})"
    if matcher is Matcher.GREATER_THAN_OR_EQUAL:
        return f"greaterThanOrEqualTo({java_literal(value)})"
    if matcher is Matcher.LESS_THAN:
        return f"lessThan({java_literal(value)})"
    if matcher is Matcher.LESS_THAN_OR_EQUAL:
        return f"lessThanOrEqualTo({java_literal(value)})"
    if matcher is Matcher.HAS_SIZE:
        return f"hasSize({value})"
    if matcher is Matcher.HAS_SIZE_GREATER_THAN:
        return f"hasSize(greaterThan({value}))"
    if matcher is Matcher.HAS_SIZE_LESS_THAN:
        return f"hasSize(lessThan({value}))"
    if matcher is Matcher.HAS_MIN_LENGTH:
        return f"hasLength(greaterThanOrEqualTo({value}))"
    if matcher is Matcher.HAS_MAX_LENGTH:
        return f"hasLength(lessThanOrEqualTo({value}))"
    if matcher is Matcher.HAS_KEY:
        return f"hasKey({java_string(value)})"
    if matcher is Matcher.EVERY_ITEM:
        return f"everyItem({hamcrest(value)})"
    raise ValueError(f"Unsupported matcher: {matcher}")


def body_check(assertion: Assertion) -> str:
    path = assertion.path
    if assertion.matcher == Matcher.EVERY_ITEM and assertion.value.path not in ("", "$"):
        # GPath collects the nested field across all items
        path = f"{path}.{assertion.value.path}"
    return f".body({java_string(gpath(path))}, {hamcrest(assertion)})"


class RestAssuredRenderer(Renderer):
    name = "rest-assured"
    language = "java"

    def render(self, model: TestModel) -> list[GeneratedFile]:
        package = model.config.java_package
        package_dir = package.replace(".", "/")
        files = []
        for tag, tests in group_by_tag(model).items():
            name = class_name(tag, "ApiTest")
            files.append(
                self._file(f"src/test/java/{package_dir}/{name}.java", self._render_class(model, name, tests))
            )
        files.append(self._file("pom.xml", self._render_pom(model), "xml"))
        return files

    def _render_class(self, model: TestModel, name: str, tests: list[EndpointTest]) -> str:
        header, prefix = auth_style(model)
        lines = [
            f"package {model.config.java_package};",
            "",
            "import io.restassured.RestAssured;",
            "import io.restassured.http.ContentType;",
            "import org.junit.jupiter.api.BeforeAll;",
            "import org.junit.jupiter.api.DisplayName;",
            "import org.junit.jupiter.api.Tag;",
            "import org.junit.jupiter.api.Test;",
            "",
            "import static io.restassured.RestAssured.given;",
            "import static org.hamcrest.Matchers.*;",
            "",
            "/**",
            f" * Generated from {model.meta.spec_title} {model.meta.spec_version} ({model.meta.source}).",
            f" * {model.meta.generated_at}, openapi-testgen {model.meta.generator_version}",
            " */",
            f"class {name} {{",
            "",
            '    private static final String AUTH_TOKEN = System.getenv().getOrDefault("API_TOKEN", "");',
            f"    private static final String AUTH_HEADER = {java_string(header)};",
            f"    private static final String AUTH_PREFIX = {java_string(prefix)};",
            "",
            "    @BeforeAll",
            "    static void setUp() {",
            "        RestAssured.baseURI = System.getenv().getOrDefault("
            f'"API_BASE_URL", {java_string(model.config.base_url)});',
            "        RestAssured.enableLoggingOfRequestAndResponseIfValidationFails();",
            "    }",
        ]
        for test in tests:
            for scenario in test.scenarios:
                lines.append("")
                lines.extend(self._render_test(test, scenario))
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _render_test(self, test: EndpointTest, scenario: TestScenario) -> list[str]:
        endpoint = test.endpoint
        request = scenario.request

        given = []
        if needs_auth(endpoint, scenario):
            given.append(".header(AUTH_HEADER, AUTH_PREFIX + AUTH_TOKEN)")
        for key, value in request.headers.items():
            given.append(f".header({java_string(key)}, {java_string(value)})")
        for key, value in request.path_params.items():
            variable = placeholder_name(value)
            if variable:
                rendered = f"System.getenv().getOrDefault({java_string(variable)}, \"\")"
            else:
                rendered = java_literal(value)
            given.append(f".pathParam({java_string(key)}, {rendered})")
        for key, value in request.query_params.items():
            if value is None:
                continue
            values = value if isinstance(value, list) else [value]
            rendered = ", ".join(java_literal(v) for v in values)
            given.append(f".queryParam({java_string(key)}, {rendered})")
        if request.form:
            for key, value in request.form.items():
                given.append(f".formParam({java_string(key)}, {java_literal(value)})")
        elif request.has_body and request.body is not None:
            given.append(".contentType(ContentType.JSON)")
            given.append(f".body({java_string(json.dumps(request.body, default=str))})")

        then = [f".statusCode({scenario.expected.status_code})"]
        then.extend(body_check(a) for a in body_assertions(scenario))

        lines = [
            "    @Test",
            f"    @Tag({java_string(scenario.type.value)})",
            f"    @DisplayName({java_string(scenario.display_name)})",
            f"    void {scenario.name}() {{",
            "        given()",
        ]
        lines.extend(f"            {part}" for part in given)
        lines.append("        .when()")
        lines.append(f"            .{endpoint.method.value.lower()}({java_string(endpoint.path)})")
        lines.append("        .then()")
        lines.extend(f"            {part}" for part in then)
        lines[-1] += ";"
        lines.append("    }")
        return lines

    def _render_pom(self, model: TestModel) -> str:
        artifact = slugify(model.meta.spec_title).lower().replace("_", "-") + "-tests"
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0"
         xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
         xsi:schemaLocation="http://maven.apache.org/POM/4.0.0 http://maven.apache.org/xsd/maven-4.0.0.xsd">
    <modelVersion>4.0.0</modelVersion>

    <groupId>{escape(model.config.java_package)}</groupId>
    <artifactId>{artifact}</artifactId>
    <version>{escape(model.meta.spec_version)}</version>

    <properties>
        <maven.compiler.source>17</maven.compiler.source>
        <maven.compiler.target>17</maven.compiler.target>
        <project.build.sourceEncoding>UTF-8</project.build.sourceEncoding>
    </properties>

    <dependencies>
        <dependency>
            <groupId>io.rest-assured</groupId>
            <artifactId>rest-assured</artifactId>
            <version>5.4.0</version>
            <scope>test</scope>
        </dependency>
        <dependency>
            <groupId>org.junit.jupiter</groupId>
            <artifactId>junit-jupiter</artifactId>
            <version>5.10.2</version>
            <scope>test</scope>
        </dependency>
        <dependency>
            <groupId>org.hamcrest</groupId>
            <artifactId>hamcrest</artifactId>
            <version>2.2</version>
            <scope>test</scope>
        </dependency>
    </dependencies>

    <build>
        <plugins>
            <plugin>
                <groupId>org.apache.maven.plugins</groupId>
                <artifactId>maven-surefire-plugin</artifactId>
                <version>3.2.5</version>
            </plugin>
        </plugins>
    </build>
</project>
"""
