"""测试配置和 fixtures"""
import pytest
from decimal import Decimal
from unittest.mock import Mock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from redis import Redis
from redlock import Redlock

from app.db.base import Base
from app.core.security import CurrentUser, Role
from app.models import Shop, Product


@pytest.fixture
def db_engine():
    """sqlite 内存数据库（StaticPool 保证跨线程共享同一连接）"""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """创建数据库会话（与 SessionLocal 配置一致）"""
    SessionLocal = sessionmaker(
        bind=db_engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    db = SessionLocal()

    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def mock_redis():
    """创建模拟 Redis 客户端"""
    redis_mock = Mock(spec=Redis)
    redis_mock.get.return_value = None
    redis_mock.setex.return_value = True
    redis_mock.delete.return_value = 1
    return redis_mock


@pytest.fixture
def mock_redlock():
    """创建模拟 Redlock 分布式锁"""
    redlock_mock = Mock(spec=Redlock)
    lock_mock = Mock()
    redlock_mock.lock.return_value = lock_mock
    redlock_mock.unlock.return_value = True
    return redlock_mock


@pytest.fixture
def mock_notifier():
    """创建模拟通知发送器"""
    return Mock()


@pytest.fixture
def customer():
    return CurrentUser(id="user-1", name="测试用户", email="buyer@example.com", role=Role.USER)


@pytest.fixture
def other_customer():
    return CurrentUser(id="user-2", name="其他用户", email="other@example.com", role=Role.USER)


@pytest.fixture
def vendor_a():
    return CurrentUser(id="vendor-a", name="商家A", email="a@example.com", role=Role.VENDOR)


@pytest.fixture
def vendor_b():
    return CurrentUser(id="vendor-b", name="商家B", email="b@example.com", role=Role.VENDOR)


@pytest.fixture
def admin():
    return CurrentUser(id="admin-1", name="管理员", email="admin@example.com", role=Role.ADMIN)


@pytest.fixture
def sample_address():
    """示例收货地址"""
    return {
        "street": "1 Market St",
        "city": "San Francisco",
        "state": "CA",
        "zipCode": "94105",
        "country": "US",
    }


@pytest.fixture
def make_shop(db_session):
    """店铺工厂"""
    def _make(owner_id: str, name: str) -> Shop:
        shop = Shop(owner_id=owner_id, name=name, description=f"{name} 测试店铺")
        db_session.add(shop)
        db_session.commit()
        return shop
    return _make


@pytest.fixture
def make_product(db_session):
    """商品工厂"""
    def _make(shop: Shop, name: str, price, stock: int) -> Product:
        product = Product(shop_id=shop.id, name=name, price=Decimal(str(price)), stock=stock)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def catalog(vendor_a, vendor_b, make_shop, make_product):
    """两个商家各一个店铺：A 店商品 stock=5 price=10，B 店商品 stock=3 price=20"""
    shop_a = make_shop(vendor_a.id, "Shop A")
    shop_b = make_shop(vendor_b.id, "Shop B")
    return {
        "shop_a": shop_a,
        "shop_b": shop_b,
        "product_a": make_product(shop_a, "Product A", 10, 5),
        "product_b": make_product(shop_b, "Product B", 20, 3),
    }
