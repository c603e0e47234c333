"""
Tests for representation selection, renderers and response code suppression.
"""

import json
import xml.etree.ElementTree as ET

import pytest
import yaml

from autorest import HTTPMethod, Request, RestConfig, XMLOptions
from autorest.content_renderers import JSONRenderer, XMLRenderer, YAMLRenderer
from autorest.errors import UnknownTypeError
from autorest.negotiation import ContentNegotiator, parse_accept


def make_request(accept=None, **query):
    headers = {"Accept": accept} if accept else {}
    return Request(method=HTTPMethod.GET, path="/users", headers=headers, query_params=query)


@pytest.fixture
def negotiator():
    return ContentNegotiator(RestConfig())


class TestAcceptParsing:
    def test_parse_accept(self):
        assert parse_accept("application/xml;q=0.5, text/x-yaml") == [
            ("application/xml", 0.5),
            ("text/x-yaml", 1.0),
        ]

    def test_invalid_quality_counts_as_one(self):
        assert parse_accept("application/json;q=high") == [("application/json", 1.0)]


class TestSelection:
    @pytest.mark.parametrize(
        "accept,extension",
        [
            ("application/json", "json"),
            ("application/xml", "xml"),
            ("text/xml", "xml"),
            ("text/x-yaml", "yml"),
            ("application/yaml", "yml"),
            ("*/*", "json"),
            ("image/png", "json"),
            ("application/xml;q=0.5, text/x-yaml", "yml"),
            ("text/x-yaml;q=0.2, application/*;q=0.8", "json"),
            ("application/json;q=0, application/xml", "xml"),
        ],
    )
    def test_accept_header(self, negotiator, accept, extension):
        assert negotiator.select(make_request(accept)).extension == extension

    def test_missing_accept_uses_default(self, negotiator):
        assert negotiator.select(make_request()).extension == "json"

    def test_configured_default(self):
        negotiator = ContentNegotiator(RestConfig(default_representation="yml"))
        assert negotiator.select(make_request("*/*")).extension == "yml"

    def test_extension_wins_over_accept(self, negotiator):
        assert negotiator.select(make_request("application/json"), "xml").extension == "xml"

    def test_unknown_extension(self, negotiator):
        with pytest.raises(UnknownTypeError) as exc_info:
            negotiator.select(make_request(), "html")
        assert exc_info.value.descriptor.slug == "unknown-type"


class TestNegotiate:
    def test_content_type_and_vary(self, negotiator):
        response = negotiator.negotiate(make_request("text/x-yaml"), "users", ["/users/1"])
        assert response.status_code == 200
        assert response.content_type == "text/x-yaml"
        assert response.headers["Vary"] == "Accept"
        assert yaml.safe_load(response.text()) == ["/users/1"]

    def test_extension_response_has_no_vary(self, negotiator):
        response = negotiator.negotiate(make_request(), "users", [], extension="json")
        assert "Vary" not in response.headers

    def test_extra_headers(self, negotiator):
        response = negotiator.negotiate(make_request(), "users", [], headers={"X-Total-Count": "0"})
        assert response.headers["X-Total-Count"] == "0"

    def test_status_passes_through(self, negotiator):
        response = negotiator.negotiate(make_request(), "error", {"reason": "x"}, status=404)
        assert response.status_code == 404
        assert response.json() == {"reason": "x"}

    def test_suppressed_status_moves_into_body(self, negotiator):
        request = make_request(suppress_response_codes="true")
        response = negotiator.negotiate(request, "error", {"reason": "x"}, status=400)
        assert response.status_code == 200
        assert response.json() == {"reason": "x", "status": 400}

    def test_suppressed_status_wraps_non_dict_payload(self, negotiator):
        request = make_request(suppress_response_codes="true")
        response = negotiator.negotiate(request, "users", ["/users/1"], status=404)
        assert response.json() == {"status": 404, "body": ["/users/1"]}

    def test_suppression_needs_true(self, negotiator):
        request = make_request(suppress_response_codes="1")
        assert negotiator.negotiate(request, "error", {}, status=400).status_code == 400

    def test_redirect(self, negotiator):
        response = negotiator.redirect(make_request(), "/users/1")
        assert response.status_code == 302
        assert response.headers["Location"] == "/users/1"

    def test_suppressed_redirect(self, negotiator):
        response = negotiator.redirect(make_request(suppress_response_codes="true"), "/users/1")
        assert response.status_code == 200
        assert response.json() == {"location": "/users/1", "status": 302}


class TestRenderers:
    def test_json(self):
        assert json.loads(JSONRenderer().render({"id": 1, "name": "Dominik"}, "user")) == {"id": 1, "name": "Dominik"}

    def test_json_scalar(self):
        assert JSONRenderer().render("Dominik", "givenname") == '"Dominik"'

    def test_yaml_keeps_order(self):
        text = YAMLRenderer().render({"lastname": "Schreiber", "givenname": "Dominik"}, "user")
        assert text.index("lastname") < text.index("givenname")

    def test_xml_list_children_are_singular(self):
        text = XMLRenderer().render(["/users/1", "/users/2"], "users")
        assert text.startswith("<?xml version='1.0' encoding='utf-8'?>\n")
        root = ET.fromstring(text.encode("utf-8"))
        assert root.tag == "users"
        assert [(child.tag, child.text) for child in root] == [("user", "/users/1"), ("user", "/users/2")]

    def test_xml_nested_record(self):
        text = XMLRenderer().render({"id": 1, "one": {"id": 2, "active": True}, "none": None}, "couple")
        root = ET.fromstring(text.encode("utf-8"))
        assert root.find("id").text == "1"
        assert root.find("one/id").text == "2"
        assert root.find("one/active").text == "true"
        assert root.find("none").text is None

    def test_xml_attributes(self):
        root = ET.fromstring(XMLRenderer().render({"_id": 1, "name": "x"}, "user").encode("utf-8"))
        assert root.attrib == {"id": "1"}
        assert root.find("name").text == "x"

    def test_xml_attributes_disabled(self):
        renderer = XMLRenderer(XMLOptions(allow_attributes=False))
        root = ET.fromstring(renderer.render({"_id": 1}, "user").encode("utf-8"))
        assert root.attrib == {}
        assert root.find("_id").text == "1"

    def test_xml_without_singular_children(self):
        renderer = XMLRenderer(XMLOptions(singularize_children=False, manifest=False, indent=None))
        assert renderer.render(["a"], "users") == "<users><item>a</item></users>"

    def test_xml_is_deterministic(self):
        payload = {"id": 1, "tags": ["a", "b"]}
        assert XMLRenderer().render(payload, "note") == XMLRenderer().render(payload, "note")
