"""Shared test fixtures for the testforge test suite."""

from pathlib import Path

import pytest

from testforge.shared.infrastructure.config import Settings
from testforge.synthesis.engine import SynthesisEngine
from testforge.syntax.providers.csharp_provider import CSharpSyntaxProvider

ORDER_SERVICE_SOURCE = """\
using System;
using System.Collections.Generic;

namespace Shop.Orders
{
    public interface IOrderRepository
    {
        Order Find(int id);
    }

    public class Order
    {
        public int Id { get; set; }
    }

    public class OrderService
    {
        private readonly IOrderRepository _repository;

        public OrderService(IOrderRepository repository, int retries, string name)
        {
        }

        public OrderService(IOrderRepository repository, int retries)
        {
            _repository = repository;
        }

        public Order Find(int id)
        {
            return _repository.Find(id);
        }

        public void Cancel(IClock clock, string reason)
        {
        }

        public static int Count()
        {
            return 0;
        }

        private void Audit()
        {
        }
    }
}
"""

TWO_NAMESPACES_SOURCE = """\
using System;

namespace Billing
{
    public class Invoice
    {
        public decimal Total()
        {
            return 0m;
        }
    }
}

namespace Shipping
{
    public class Parcel
    {
        public Parcel(ICarrier carrier)
        {
        }

        public void Ship()
        {
        }
    }
}
"""


@pytest.fixture
def provider():
    """Create a C# syntax provider."""
    return CSharpSyntaxProvider()


@pytest.fixture
def engine():
    """Create a synthesis engine with default options."""
    return SynthesisEngine()


@pytest.fixture
def settings():
    """Settings isolated from the environment's pipeline knobs."""
    return Settings(max_parallelism=2, queue_size=0, fail_fast=False)


@pytest.fixture
def write_source(tmp_path):
    """Write a C# source file under tmp_path/src and return its path."""
    source_dir = tmp_path / "src"
    source_dir.mkdir(exist_ok=True)

    def _write(name: str, content: str) -> Path:
        path = source_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def order_service_source():
    return ORDER_SERVICE_SOURCE


@pytest.fixture
def two_namespaces_source():
    return TWO_NAMESPACES_SOURCE


@pytest.fixture
def order_service_file(write_source):
    return write_source("OrderService.cs", ORDER_SERVICE_SOURCE)


@pytest.fixture
def two_namespaces_file(write_source):
    return write_source("Shipping.cs", TWO_NAMESPACES_SOURCE)
