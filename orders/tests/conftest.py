from decimal import Decimal

import pytest
from cart.tests.factories import CartFactory
from catalog.tests.factories import ProductFactory, ProductVariantFactory
from users.tests.factories import StaffUserFactory, UserFactory


@pytest.fixture
def user():
    return UserFactory(email="buyer@example.com")


@pytest.fixture
def staff():
    return StaffUserFactory()


@pytest.fixture
def cart(user):
    return CartFactory(user=user)


@pytest.fixture
def variant():
    product = ProductFactory(name="Classic Tee", base_price=Decimal("500.00"), customization_fee=Decimal("0.00"))
    return ProductVariantFactory(product=product, size="M", color="Red", stock=5)


@pytest.fixture
def custom_variant():
    product = ProductFactory(name="Studio Hoodie", base_price=Decimal("900.00"), customization_fee=Decimal("150.00"))
    return ProductVariantFactory(product=product, size="L", color="Black", stock=4)


@pytest.fixture
def address():
    return {
        "name": "Asha Rao",
        "phone": "+919876543210",
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "KA",
        "postalCode": "560001",
        "country": "India",
    }
