"""
Tests for the synthesis engine on real C# source text.
"""

import pytest

from testforge.shared.domain.exceptions import ParseFailure
from testforge.shared.infrastructure.config import EligibilityPolicy
from testforge.synthesis.engine import SynthesisEngine, generate
from testforge.synthesis.models import GeneratedTestUnit, SynthesisOptions

EXPECTED_ORDER_SERVICE_TESTS = """\
using System;
using System.Collections.Generic;
using NUnit.Framework;
using Moq;
using Shop.Orders;

namespace Shop.Orders.Tests
{
    public class OrderServiceTests
    {
        private OrderService _OrderServiceUnderTest;
        private Mock<IOrderRepository> _repository_dependency;

        [SetUp]
        public void SetUp()
        {
            _repository_dependency = new Mock<IOrderRepository>();
            int retries = default;
            _OrderServiceUnderTest = new OrderService(_repository_dependency.Object, retries);
        }

        [Test]
        public void FindTest()
        {
            int id = default;
            Order actual = _OrderServiceUnderTest.Find(id);
            Order expected = default;
            Assert.That(actual, Is.EqualTo(expected));
            Assert.Fail("autogenerated");
        }

        [Test]
        public void CancelTest()
        {
            Mock<IClock> _clock_dependency = new Mock<IClock>();
            string reason = default;
            _OrderServiceUnderTest.Cancel(_clock_dependency.Object, reason);
            Assert.Fail("autogenerated");
        }

        [Test]
        public void CountTest()
        {
            int actual = OrderService.Count();
            int expected = default;
            Assert.That(actual, Is.EqualTo(expected));
            Assert.Fail("autogenerated");
        }
    }
}
"""


def method_block(source: str, test_name: str) -> list[str]:
    """Statement lines of one generated test method."""
    lines = [line.strip() for line in source.splitlines()]
    start = lines.index(f"public void {test_name}()") + 2
    end = lines.index("}", start)
    return lines[start:end]


class TestGenerate:
    def test_full_output(self, engine, order_service_source):
        units = engine.generate(order_service_source, "OrderService.cs")

        assert units == (
            GeneratedTestUnit(
                name="OrderServiceTests",
                source=EXPECTED_ORDER_SERVICE_TESTS,
                namespace="Shop.Orders",
            ),
        )

    def test_zero_method_class_yields_no_unit(self, engine, order_service_source):
        names = [unit.name for unit in engine.generate(order_service_source)]

        assert "OrderTests" not in names

    def test_any_class_policy(self, order_service_source):
        engine = SynthesisEngine(SynthesisOptions(eligibility_policy=EligibilityPolicy.ANY_CLASS))

        assert [u.name for u in engine.generate(order_service_source)] == ["OrderTests", "OrderServiceTests"]

    def test_units_follow_namespace_then_class_order(self, engine, two_namespaces_source):
        units = engine.generate(two_namespaces_source)

        assert [(u.namespace, u.name) for u in units] == [
            ("Billing", "InvoiceTests"),
            ("Shipping", "ParcelTests"),
        ]

    def test_mixed_constructor(self, engine):
        code = """
        namespace Shop
        {
            public class Checkout
            {
                public Checkout(IPayments payments, decimal fee) { }

                public void Pay() { }
            }
        }
        """
        (unit,) = engine.generate(code)
        setup = method_block(unit.source, "SetUp")

        assert setup == [
            "_payments_dependency = new Mock<IPayments>();",
            "decimal fee = default;",
            "_CheckoutUnderTest = new Checkout(_payments_dependency.Object, fee);",
        ]
        assert unit.source.count("new Mock<") == 1
        assert unit.source.count("= default;") == 1

    def test_static_class_has_no_fields(self, engine):
        code = """
        namespace Shop
        {
            public static class Money
            {
                static Money() { }

                public static decimal Round(decimal value) { return value; }
            }
        }
        """
        (unit,) = engine.generate(code)

        assert "private " not in unit.source
        assert "UnderTest" not in unit.source
        assert method_block(unit.source, "SetUp") == []
        assert method_block(unit.source, "RoundTest") == [
            "decimal value = default;",
            "decimal actual = Money.Round(value);",
            "decimal expected = default;",
            "Assert.That(actual, Is.EqualTo(expected));",
            'Assert.Fail("autogenerated");',
        ]

    def test_void_method_shape(self, engine, order_service_source):
        (unit,) = engine.generate(order_service_source)
        body = method_block(unit.source, "CancelTest")

        assert body[-2:] == [
            "_OrderServiceUnderTest.Cancel(_clock_dependency.Object, reason);",
            'Assert.Fail("autogenerated");',
        ]
        assert not any("actual" in line or "expected" in line for line in body)

    def test_nested_class_imports_outer_class(self, engine):
        code = """
        namespace Shop
        {
            public class Outer
            {
                public void Run() { }

                public class Inner
                {
                    public void Step() { }
                }
            }
        }
        """
        units = engine.generate(code)

        assert [u.name for u in units] == ["OuterTests", "InnerTests"]
        assert "using Shop.Outer;" in units[1].source
        assert "namespace Shop.Tests" in units[1].source

    def test_generic_class_skipped_rest_generated(self, engine):
        code = """
        namespace Shop
        {
            public class Box<T>
            {
                public T Get() { return default; }
            }

            public class Shelf
            {
                public int Count() { return 0; }
            }
        }
        """
        assert [u.name for u in engine.generate(code)] == ["ShelfTests"]

    def test_partial_class_yields_one_unit(self, engine):
        code = """
        namespace Shop
        {
            public partial class Cart
            {
                public void Add() { }
            }

            public partial class Cart
            {
                public Cart(IPricing pricing) { }

                public void Remove() { }
            }
        }
        """
        (unit,) = engine.generate(code)

        assert unit.name == "CartTests"
        assert unit.source.index("public void AddTest()") < unit.source.index("public void RemoveTest()")
        assert "_CartUnderTest = new Cart(_pricing_dependency.Object);" in unit.source

    def test_partial_parts_in_separate_namespace_blocks(self, engine):
        code = """
        namespace Shop { public partial class Cart { public void Add() { } } }
        namespace Shop { public partial class Cart { public void Remove() { } } }
        """
        assert [u.name for u in engine.generate(code)] == ["CartTests"]

    def test_declared_interface_not_following_convention_is_mocked(self, engine):
        code = """
        namespace Shop
        {
            public interface Clock
            {
            }

            public class Timer
            {
                public Timer(Clock clock) { }

                public void Start() { }
            }
        }
        """
        (unit,) = engine.generate(code)

        assert "private Mock<Clock> _clock_dependency;" in unit.source

    def test_idempotent(self, engine, order_service_source):
        first = engine.generate(order_service_source)
        second = engine.generate(order_service_source)

        assert [u.source.encode("utf-8") for u in first] == [u.source.encode("utf-8") for u in second]

    def test_separate_engines_agree(self, order_service_source):
        assert SynthesisEngine().generate(order_service_source) == SynthesisEngine().generate(order_service_source)


class TestErrors:
    def test_parse_failure_attributed_to_path(self, engine):
        with pytest.raises(ParseFailure) as exc_info:
            engine.generate("namespace Broken { public class }", "Broken.cs")

        assert exc_info.value.source_path == "Broken.cs"

    def test_source_text_is_required(self, engine):
        with pytest.raises(TypeError):
            engine.generate(None)


def test_module_level_generate(order_service_source):
    assert [u.name for u in generate(order_service_source)] == ["OrderServiceTests"]
