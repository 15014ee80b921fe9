import pytest

from pos import create_app
from pos.database import Base, db_session, create_tables, drop_tables
from pos.models import Operator, Category, Product
from pos.state.store import PosStore


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (SQLite in memory)."""
    app = create_app('config.TestingConfig')
    with app.app_context():
        create_tables()
    yield app
    with app.app_context():
        drop_tables()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Empty every table and close every till before each test."""
    app.extensions['tills'].clear()
    for table in reversed(Base.metadata.sorted_tables):
        db_session.execute(table.delete())
    db_session.commit()

    yield db_session

    db_session.rollback()
    db_session.remove()


@pytest.fixture(scope='function')
def operator(session):
    """Create a test operator."""
    operator = Operator(email='kasir@toko.test', full_name='Kasir Satu', active=True)
    operator.set_password('password123')
    session.add(operator)
    session.commit()
    return operator


@pytest.fixture(scope='function')
def category(session):
    """Create test category."""
    category = Category(name='Minuman')
    session.add(category)
    session.commit()
    return category


@pytest.fixture(scope='function')
def product(session, category):
    """Create test product: Rp3.500, 10 in stock."""
    product = Product(
        id='8991001',
        name='Teh Botol',
        price=3500,
        purchase_price=2500,
        stock=10,
        category_id=category.id
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def second_product(session):
    """Uncategorized product with little stock."""
    product = Product(id='8991002', name='Roti Tawar', price=15000, purchase_price=11000, stock=3)
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def store(app, session, operator):
    """Mounted till store subscribed to the app's change feed."""
    store = PosStore(
        session,
        feed=app.extensions['realtime'],
        operator_id=operator.id,
        low_stock_threshold=app.config['LOW_STOCK_THRESHOLD']
    )
    store.mount()
    yield store
    store.unmount()


@pytest.fixture(scope='function')
def authenticated_client(client, operator):
    """Client signed in as the test operator."""
    response = client.post('/login', json={'email': operator.email, 'password': 'password123'})
    assert response.status_code == 200
    return client
