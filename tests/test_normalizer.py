"""Tests for diconf.normalizer - service definition normalization."""

import abc as _abc
import typing as _typing

import pytest as _pytest

import diconf.definitions as definitions
import diconf.errors as errors
import diconf.merge as merge
import diconf.normalizer as normalizer
import diconf.statement as statement

Statement = statement.Statement

INTERFACES = {"App.MailerFactory"}


def _normalize(value: _typing.Any) -> _typing.Any:
    return normalizer.normalize_structure(value, interface_exists=INTERFACES.__contains__)


def _definition(**config: _typing.Any) -> definitions.ServiceDefinition:
    definition = definitions.ServiceDefinition(name="svc")
    normalizer.update_definition(definition, config, "svc")
    return definition


class AbstractMailer(_abc.ABC):
    """Abstract class used as an interface."""

    @_abc.abstractmethod
    def send(self) -> None: ...


class MailerProtocol(_typing.Protocol):
    """Protocol used as an interface."""

    def send(self) -> None: ...


class ConcreteMailer:
    """Plain class, not an interface."""


# =============================================================================
# normalize_structure
# =============================================================================


class TestNormalizeStructure:
    """Shorthand entries are brought into mapping form."""

    def test_none_is_empty(self) -> None:
        assert _normalize(None) == {}

    @_pytest.mark.parametrize("value", [False, [False]])
    def test_removal(self, value: _typing.Any) -> None:
        assert _normalize(value) == [False]

    def test_zero_is_not_removal(self) -> None:
        """Only the literal False removes a service."""
        assert _normalize([0]) == {"factory": [0]}

    def test_string_is_factory(self) -> None:
        assert _normalize("App.Mailer") == {"factory": "App.Mailer"}

    def test_statement_is_factory(self) -> None:
        stmt = Statement("App.Mailer", ["smtp"])
        assert _normalize(stmt) == {"factory": stmt}

    def test_interface_name(self) -> None:
        assert _normalize("App.MailerFactory") == {"implement": "App.MailerFactory"}

    def test_interface_statement(self) -> None:
        """The first argument of an interface statement becomes the factory."""
        stmt = Statement("App.MailerFactory", ["App.SmtpMailer", "ignored"])
        assert _normalize(stmt) == {
            "implement": "App.MailerFactory",
            "factory": "App.SmtpMailer",
        }

    def test_interface_statement_without_arguments(self) -> None:
        assert _normalize(Statement("App.MailerFactory", [])) == {
            "implement": "App.MailerFactory",
            "factory": None,
        }

    def test_positional_mapping_is_factory(self) -> None:
        """A mapping holding keys 0 and 1 is a [target, method] pair."""
        value = {0: "App.Factory", 1: "create"}
        assert _normalize(value) == {"factory": ["App.Factory", "create"]}

    def test_aliases_folded(self) -> None:
        assert _normalize({"class": "A", "dynamic": True}) == {"type": "A", "external": True}

    def test_alias_conflict(self) -> None:
        with _pytest.raises(errors.ConflictError) as exc_info:
            _normalize({"class": "A", "type": "B"})
        assert str(exc_info.value) == "Options 'class' and 'type' are aliases, use only 'type'."

    def test_input_not_modified(self) -> None:
        value = {"class": "A"}
        _normalize(value)
        assert value == {"class": "A"}


class TestInterfaceExists:
    """The default interface predicate."""

    def test_abstract_class(self) -> None:
        assert normalizer.interface_exists(f"{__name__}.AbstractMailer")

    def test_protocol(self) -> None:
        assert normalizer.interface_exists(f"{__name__}.MailerProtocol")

    def test_stdlib_abc(self) -> None:
        assert normalizer.interface_exists("collections.abc.Sized")

    def test_concrete_class(self) -> None:
        assert not normalizer.interface_exists(f"{__name__}.ConcreteMailer")

    @_pytest.mark.parametrize("name", ["Mailer", "no_such_module.Mailer", "collections.abc.Nope"])
    def test_unknown_names(self, name: str) -> None:
        assert not normalizer.interface_exists(name)


# =============================================================================
# update_definition
# =============================================================================


class TestKnownKeys:
    """Unknown options are rejected with suggestions."""

    def test_typo_suggested(self) -> None:
        with _pytest.raises(errors.ShapeError) as exc_info:
            _definition(facotry="App.Mailer")
        assert str(exc_info.value) == (
            "Unknown key 'facotry' in definition of service, did you mean 'factory'?"
        )

    def test_no_suggestion(self) -> None:
        with _pytest.raises(errors.ShapeError) as exc_info:
            _definition(zzzzzzzzzz=1)
        assert str(exc_info.value) == "Unknown key 'zzzzzzzzzz' in definition of service."

    def test_definition_untouched_on_error(self) -> None:
        definition = definitions.ServiceDefinition(name="svc")
        with _pytest.raises(errors.ShapeError):
            normalizer.update_definition(definition, {"factory": "A", "bogus": 1})
        assert definition.factory is None


class TestFieldTypes:
    """Each option is type-checked."""

    @_pytest.mark.parametrize(
        ("key", "value", "message"),
        [
            ("factory", 1, "The option 'factory' expects to be callable, Statement or null, int given."),
            ("factory", ["A"], "The option 'factory' expects to be callable, Statement or null, list given."),
            ("type", 1, "The option 'type' expects to be string, Statement or null, int given."),
            ("external", "yes", "The option 'external' expects to be bool, string 'yes' given."),
            ("inject", 1, "The option 'inject' expects to be bool, int given."),
            ("implement", True, "The option 'implement' expects to be string, bool given."),
            ("autowired", 1, "The option 'autowired' expects to be bool, string or array, int given."),
            ("arguments", "x", "The option 'arguments' expects to be array, string 'x' given."),
            ("parameters", 1, "The option 'parameters' expects to be array, int given."),
            ("setup", "init", "The option 'setup' expects to be list, string 'init' given."),
            ("tags", "t", "The option 'tags' expects to be array, string 't' given."),
        ],
    )
    def test_wrong_type(self, key: str, value: _typing.Any, message: str) -> None:
        with _pytest.raises(errors.ShapeError) as exc_info:
            _definition(**{key: value})
        assert str(exc_info.value) == message

    def test_null_options_ignored(self) -> None:
        """Null counts as absent for options other than type and factory."""
        definition = _definition(
            arguments=None, setup=None, tags=None, external=None, implement=None
        )
        assert definition.factory is None
        assert definition.external is False
        assert definition.implement is None


class TestTypeAndFactory:
    """type/factory handling."""

    def test_type_sets_factory(self) -> None:
        definition = _definition(type="App.Mailer")
        assert definition.type == "App.Mailer"
        assert definition.factory == Statement("App.Mailer", [])

    def test_factory_resets_type(self) -> None:
        definition = _definition(type="App.Mailer")
        normalizer.update_definition(definition, {"factory": "App.create"})
        assert definition.type is None
        assert definition.factory == Statement("App.create", [])

    def test_factory_pair(self) -> None:
        definition = _definition(factory=["App.Factory", "create"])
        assert definition.factory == Statement(["App.Factory", "create"], [])

    def test_factory_statement(self) -> None:
        stmt = Statement("App.Mailer", ["smtp"])
        assert _definition(factory=stmt).factory == stmt

    def test_null_factory_clears(self) -> None:
        definition = _definition(factory="A")
        normalizer.update_definition(definition, {"factory": None})
        assert definition.factory is None

    def test_statement_type_deprecated(self) -> None:
        """A Statement under type is reported and only sets the factory."""
        messages: list[str] = []
        definition = definitions.ServiceDefinition(name="mailer")
        stmt = Statement("App.Mailer", [1])
        normalizer.update_definition(
            definition, {"type": stmt}, "mailer", on_deprecation=messages.append
        )
        assert messages == [
            "Service 'mailer': option 'type' or 'class' should be changed to 'factory'."
        ]
        assert definition.type is None
        assert definition.factory == stmt


class TestArguments:
    """arguments option."""

    def test_positional(self) -> None:
        definition = _definition(factory="A", arguments=[1, 2])
        assert definition.arguments == [1, 2]

    def test_without_factory(self) -> None:
        definition = _definition(arguments=[1])
        assert definition.factory == Statement(None, [1])

    def test_named_merge_with_factory(self) -> None:
        """Named arguments are merged over the factory arguments, new keys win."""
        definition = _definition(factory=Statement("A", {"host": "a", "port": 25}))
        normalizer.update_definition(definition, {"arguments": {"host": "b"}})
        assert definition.arguments == {"host": "b", "port": 25}

    def test_named_merge_positional_factory(self) -> None:
        definition = _definition(factory=Statement("A", ["x"]))
        normalizer.update_definition(definition, {"arguments": {"port": 25}})
        assert definition.arguments == {"port": 25, 0: "x"}

    def test_positional_replaces(self) -> None:
        definition = _definition(factory=Statement("A", ["x", "y"]))
        normalizer.update_definition(definition, {"arguments": ["z"]})
        assert definition.arguments == ["z"]

    def test_marked_replaces(self) -> None:
        definition = _definition(factory=Statement("A", {"host": "a", "port": 25}))
        marked = merge.mark_overwrite({"host": "b"}, "arguments!")
        normalizer.update_definition(definition, {"arguments": marked})
        assert definition.arguments == {"host": "b"}


class TestSetup:
    """setup option."""

    def test_item_shapes(self) -> None:
        definition = _definition(
            setup=[
                "init",
                ["@logger", "attach"],
                Statement("setLevel", [1]),
                {"setDir": "/tmp"},
            ]
        )
        assert definition.setup == [
            Statement("init", []),
            Statement(["@logger", "attach"], []),
            Statement("setLevel", [1]),
            Statement("setDir", ["/tmp"]),
        ]

    def test_setup_appends(self) -> None:
        definition = _definition(setup=["a"])
        normalizer.update_definition(definition, {"setup": ["b"]})
        assert [s.entity for s in definition.setup] == ["a", "b"]

    def test_marked_setup_replaces(self) -> None:
        definition = _definition(setup=["a"])
        normalizer.update_definition(definition, {"setup": merge.OverwriteList(["b"])})
        assert [s.entity for s in definition.setup] == ["b"]

    def test_marked_empty_setup_clears(self) -> None:
        definition = _definition(setup=["a"])
        normalizer.update_definition(definition, {"setup": merge.mark_overwrite(None, "setup!")})
        assert definition.setup == []

    @_pytest.mark.parametrize("item", [1, {"a": 1, "b": 2}, ["A"]])
    def test_invalid_item(self, item: _typing.Any) -> None:
        with _pytest.raises(errors.ShapeError, match="setup item #1"):
            _definition(setup=["ok", item])


class TestOtherOptions:
    """parameters, implement, autowired, external, inject."""

    def test_parameters(self) -> None:
        assert _definition(parameters=["$name"]).parameters == ["$name"]

    def test_implement_forces_autowired(self) -> None:
        definition = definitions.ServiceDefinition(name="svc", autowired=False)
        normalizer.update_definition(definition, {"implement": "App.MailerFactory"})
        assert definition.implement == "App.MailerFactory"
        assert definition.autowired is True

    def test_autowired_values(self) -> None:
        assert _definition(autowired=False).autowired is False
        assert _definition(autowired="App.Mailer").autowired == "App.Mailer"
        assert _definition(autowired=["A", "B"]).autowired == ["A", "B"]

    def test_external(self) -> None:
        assert _definition(external=True).external is True

    def test_inject_is_tag(self) -> None:
        definition = _definition(inject=True)
        assert definition.inject is True
        assert definition.get_tag(definitions.INJECT_TAG) is True

    def test_alteration_accepted(self) -> None:
        """alteration is handled by the processor; here it is just valid."""
        assert _definition(alteration=True).factory is None


class TestTags:
    """tags option."""

    def test_flag_tags(self) -> None:
        definition = _definition(tags=["cli", "console"])
        assert definition.tags == {"cli": True, "console": True}

    def test_mixed_mapping(self) -> None:
        definition = _definition(tags={0: "cli", "priority": {"value": 5}})
        assert definition.tags == {"cli": True, "priority": {"value": 5}}

    def test_tags_accumulate(self) -> None:
        definition = _definition(tags=["a"])
        normalizer.update_definition(definition, {"tags": ["b"]})
        assert set(definition.tags) == {"a", "b"}

    def test_marked_tags_replace(self) -> None:
        definition = _definition(tags=["a"])
        normalizer.update_definition(definition, {"tags": merge.OverwriteList(["b"])})
        assert definition.tags == {"b": True}

    def test_invalid_tag(self) -> None:
        with _pytest.raises(errors.ShapeError, match="The tag #0"):
            _definition(tags=[1])
