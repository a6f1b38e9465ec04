from pathlib import Path
import textwrap

import pytest

from uipom.core.descriptor_loader import (
    load_descriptor_dir,
    load_descriptor_files,
    load_descriptor_text,
    parse_component,
    to_identifier,
)
from uipom.core.descriptors import ComponentDescriptor, DescriptorModel, singularize
from uipom.errors import DescriptorError
from uipom.selectors import LocatorDialect


def test_nuget_model_shape(nuget_model):
    assert [p.name for p in nuget_model.pages] == ["Home", "PackageDetails"]
    home = nuget_model.find("Home")
    names = [c.name for c in home.children]
    assert names == ["SearchInput", "SearchButton", "Packages", "PasswordField", "Footer"]

    packages = home.children[2]
    assert packages.is_plural
    assert packages.singular_name == "Package"
    assert packages.namespace == "nuget.Home"
    assert packages.children[0].namespace == "nuget.Home.Packages"

    search = home.children[0]
    assert search.locator.dialect == LocatorDialect.css
    assert home.children[1].locator.dialect == LocatorDialect.xpath
    password = home.children[3].locator
    assert (password.dialect, password.expression) == (LocatorDialect.css, "input[type=password]")


def test_references_are_linked(nuget_model):
    footer = nuget_model.find("Footer", "nuget")
    alias = nuget_model.find("Home").children[-1]
    assert alias.referenced_descriptor is footer
    assert alias.dereference() is footer
    assert alias.effective_locator == footer.locator


def test_singular_key_implies_plural(nuget_model):
    links = nuget_model.find("Footer").children[0]
    assert links.is_plural
    assert links.singular_name == "Link"


def test_multi_document_text():
    raw = textwrap.dedent(
        """
        namespace: a
        components:
          Header: header
        ---
        namespace: b
        pages:
          Login:
            components:
              Header: { ref: Header }
        """
    )
    model = load_descriptor_text(raw)
    assert len(model.roots) == 2
    login = model.find("b.Login")
    assert login.children[0].referenced_descriptor is model.find("a.Header")


def test_unknown_reference_names_the_target():
    raw = "pages:\n  Home:\n    components:\n      Nav: { ref: Navigation }\n"
    with pytest.raises(DescriptorError, match="unknown component 'Navigation'"):
        load_descriptor_text(raw)


def test_ambiguous_short_reference():
    raw = textwrap.dedent(
        """
        namespace: x
        components:
          Menu: nav
        ---
        namespace: y
        components:
          Menu: nav
        ---
        namespace: z
        pages:
          Home:
            components:
              M: { ref: Menu }
        """
    )
    with pytest.raises(DescriptorError, match="ambiguous reference 'Menu'"):
        load_descriptor_text(raw)


@pytest.mark.parametrize(
    "raw, fragment",
    [
        ("pages: {}\n", "no pages or components"),
        ("components:\n  A: { plural: true }\n", "needs a locator"),
        ("components:\n  A: { by: a, unknown: 1 }\n", "unknown"),
        ("components:\n  A: { ref: B, components: { C: c } }\n", "takes its members"),
        ("namespace: 'not valid'\ncomponents:\n  A: a\n", "dotted identifier"),
        ("- just\n- a list\n", "mapping"),
        ("components: [\n", "YAML parse error"),
    ],
)
def test_schema_errors_are_descriptor_errors(raw, fragment):
    with pytest.raises(DescriptorError, match=fragment):
        load_descriptor_text(raw)


def test_duplicate_roots_rejected():
    raw = "components:\n  A: a\n---\ncomponents:\n  A: b\n"
    with pytest.raises(DescriptorError, match="duplicate descriptor 'pages.A'"):
        load_descriptor_text(raw)


def test_env_substitution(monkeypatch):
    monkeypatch.setenv("LOGIN_ID", "login-form")
    model = load_descriptor_text("components:\n  Form: '#${LOGIN_ID}'\n")
    assert model.find("Form").locator.expression == "#login-form"


def test_files_and_directory(tmp_path: Path):
    shared = tmp_path / "shared.yaml"
    shared.write_text("namespace: site\ncomponents:\n  Footer: footer\n", encoding="utf-8")
    sub = tmp_path / "pages"
    sub.mkdir()
    (sub / "home.yml").write_text(
        "namespace: site\npages:\n  Home:\n    components:\n      Footer: { ref: Footer }\n", encoding="utf-8"
    )

    model = load_descriptor_dir(tmp_path)
    assert {r.qualified_name for r in model.roots} == {"site.Footer", "site.Home"}

    with pytest.raises(FileNotFoundError):
        load_descriptor_files([tmp_path / "missing.yaml"])


def test_parse_component_shorthand():
    node = parse_component("result rows", {"by": ".row", "plural": True}, "ns")
    assert node.name == "ResultRows"
    assert node.singular_name == "ResultRow"
    assert node.locator.expression == ".row"


@pytest.mark.parametrize(
    "key, ident",
    [("search box", "SearchBox"), ("packages", "Packages"), ("2fa code", "_2faCode"), ("Title", "Title")],
)
def test_to_identifier(key, ident):
    assert to_identifier(key) == ident


@pytest.mark.parametrize(
    "plural, single",
    [
        ("Packages", "Package"),
        ("SearchResults", "SearchResult"),
        ("Entries", "Entry"),
        ("Boxes", "Box"),
        ("Children", "Child"),
        ("Class", "ClassItem"),
        ("Data", "Datum"),
    ],
)
def test_singularize(plural, single):
    assert singularize(plural) == single


def test_model_walk_and_len(nuget_model):
    assert len(nuget_model) == sum(1 for _ in nuget_model.walk())
    assert nuget_model.link() is nuget_model


def test_dereference_detects_loops():
    a = ComponentDescriptor(name="A", namespace="ns")
    b = ComponentDescriptor(name="B", namespace="ns", referenced_descriptor=a)
    a.referenced_descriptor = b
    with pytest.raises(DescriptorError, match="reference cycle"):
        a.dereference()


def test_model_find_prefers_enclosing_namespace():
    model = DescriptorModel()
    outer = model.add(ComponentDescriptor(name="Menu", namespace="app"))
    inner = model.add(ComponentDescriptor(name="Menu", namespace="app.admin"))
    assert model.find("Menu", "app.admin.Dashboard") is inner
    assert model.find("Menu", "app.Home") is outer
