"""Shared test fixtures for ImpactScope."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

DISCOUNT_BEFORE = """export function calculateDiscount(price: number): number {
  if (price > 100) {
    return price * 0.1;
  }
  return 0;
}
"""

DISCOUNT_AFTER = """export function calculateDiscount(price: number, coupon?: string): number {
  if (price > 100) {
    return price * 0.1;
  }
  return 0;
}
"""


def _write(root: Path, rel_path: str, text: str) -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


@pytest.fixture
def discount_before() -> str:
    return DISCOUNT_BEFORE


@pytest.fixture
def discount_after() -> str:
    return DISCOUNT_AFTER


@pytest.fixture
def pricing_project(tmp_path: Path) -> Path:
    """A small TypeScript checkout project.

    Import graph (importer -> imported):
        checkoutController       -> calculateDiscount
        pricingService           -> calculateDiscount
        calculateDiscount.test   -> calculateDiscount
        checkoutController.test  -> checkoutController, calculateDiscount
        app                      -> checkoutController
    """
    root = tmp_path / "pricing"
    _write(root, "src/calculateDiscount.ts", DISCOUNT_BEFORE)
    _write(root, "src/checkoutController.ts", """import { calculateDiscount } from './calculateDiscount';

export class CheckoutController {
  checkout(price: number): number {
    return price - calculateDiscount(price);
  }
}
""")
    _write(root, "src/pricingService.ts", """import { calculateDiscount } from './calculateDiscount';

export class PricingService {
  finalPrice(price: number): number {
    return price - calculateDiscount(price);
  }
}
""")
    _write(root, "src/calculateDiscount.test.ts", """import { calculateDiscount } from './calculateDiscount';

describe('calculateDiscount', () => {
  it('discounts large orders', () => {
    expect(calculateDiscount(200)).toBe(20);
  });
});
""")
    _write(root, "src/checkoutController.test.ts", """import { CheckoutController } from './checkoutController';
import { calculateDiscount } from './calculateDiscount';

describe('CheckoutController', () => {
  it('applies the discount', () => {
    const controller = new CheckoutController();
    expect(controller.checkout(200)).toBe(200 - calculateDiscount(200));
  });
});
""")
    _write(root, "src/app.ts", """import { CheckoutController } from './checkoutController';

export const start = () => new CheckoutController();
""")
    _write(root, "README.md", "# pricing\n")
    return root


@pytest.fixture
def barrel_project(tmp_path: Path) -> Path:
    """core <- index (barrel) <- feature <- page, plus a cycle a <-> b."""
    root = tmp_path / "barrels"
    _write(root, "src/lib/core.ts", "export function core(): number { return 1; }\n")
    _write(root, "src/lib/index.ts", "export * from './core';\nexport { core as base } from './core';\n")
    _write(root, "src/feature.ts", "import { core } from './lib';\nexport const feature = () => core();\n")
    _write(root, "src/page.js", "const { feature } = require('./feature');\nmodule.exports = feature;\n")
    _write(root, "src/a.ts", "import { b } from './b';\nexport function a() { return b(); }\n")
    _write(root, "src/b.ts", "import { a } from './a';\nexport function b() { return 1; }\n")
    return root


@pytest.fixture
def python_project(tmp_path: Path) -> Path:
    """A Python package using absolute, relative and package imports."""
    root = tmp_path / "shop"
    _write(root, "shop/__init__.py", '"""Shop package."""\nfrom .cart import Cart\n\n__all__ = ["Cart"]\n')
    _write(root, "shop/pricing.py", '''"""Pricing rules."""

TAX_RATE = 0.08


def calculate_total(items):
    return sum(items) * (1 + TAX_RATE)


class Discount:
    def apply(self, total):
        return total * 0.9
''')
    _write(root, "shop/cart.py", '''from .pricing import calculate_total


class Cart:
    def __init__(self):
        self.items = []

    def total(self):
        return calculate_total(self.items)
''')
    _write(root, "main.py", '''from shop import Cart
import shop.pricing


def run():
    return Cart().total()
''')
    _write(root, "tests/test_pricing.py", '''from shop.pricing import calculate_total


def test_total():
    assert calculate_total([]) == 0
''')
    return root


def _git(root: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", "-c", "commit.gpgsign=false", *args],
        cwd=root,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture
def git_project(pricing_project: Path) -> Path:
    """The pricing project committed to a fresh git repository with an origin remote."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    _git(pricing_project, "init", "-q")
    _git(pricing_project, "add", "-A")
    _git(pricing_project, "commit", "-q", "-m", "Initial commit")
    _git(pricing_project, "remote", "add", "origin", "git@github.com:Acme/Pricing.git")
    return pricing_project


@pytest.fixture
def run_git():
    """Run a git command in a directory with a fixed test identity."""
    return _git
