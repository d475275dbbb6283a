import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shopsathi import config, database, models, orders, schemas, services
from shopsathi.auth import create_access_token, get_owner_id, hash_password, verify_password
from shopsathi.errors import AuthError, NotFoundError, ShopError, StoreError, ValidationError
from shopsathi.orders import owner_filter

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="ShopSathi API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

if config.AUTO_CREATE_TABLES:
    models.Base.metadata.create_all(database.engine)
    logger.info("Database tables ensured")


@app.exception_handler(ShopError)
def shop_error_handler(request: Request, exc: ShopError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"][1:])
        problems.append(f"{field}: {err['msg']}" if field else err["msg"])
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": "; ".join(problems)})


@app.exception_handler(SQLAlchemyError)
def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Store error on %s %s", request.method, request.url.path)
    error = StoreError.from_exception(exc)
    return JSONResponse(status_code=error.status_code, content={"message": error.message})


def now_iso():
    return datetime.now(timezone.utc).isoformat()


@app.get('/')
def index():
    return {"message": "ShopSathi API is running!", "timestamp": now_iso(), "environment": config.ENVIRONMENT}


@app.get('/api/health')
def health():
    return {"status": "OK", "timestamp": now_iso()}


# --------------------------------------------------------
# AUTH
# --------------------------------------------------------

def token_response(user):
    token = create_access_token(data={"id": user.id})
    return {"token": token, "user": schemas.UserOut.model_validate(user)}


@app.post('/api/auth/signup', response_model=schemas.TokenOut, status_code=status.HTTP_201_CREATED)
def signup(request: schemas.Credentials, db: Session = Depends(database.get_db)):
    if not request.email or not request.password:
        raise ValidationError("Email and password are required")
    if db.query(models.User).filter(models.User.email == request.email).first():
        logger.info("Signup refused for %s", request.email)
        raise ValidationError("Unable to create account")

    new_user = models.User(email=request.email, password=hash_password(request.password))
    if request.shop_name:
        new_user.shop_name = request.shop_name
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Unable to create account")
    db.refresh(new_user)
    logger.info("User %s signed up", new_user.id)
    return token_response(new_user)


@app.post('/api/auth/login', response_model=schemas.TokenOut, status_code=status.HTTP_200_OK)
def login(request: schemas.Credentials, db: Session = Depends(database.get_db)):
    user = None
    if request.email and request.password:
        user = db.query(models.User).filter(models.User.email == request.email).first()
    if user is None or not verify_password(request.password, user.password):
        logger.info("Failed login for %s", request.email)
        raise AuthError("Invalid credentials")
    logger.info("User %s logged in", user.id)
    return token_response(user)


@app.post('/api/auth/logout', status_code=status.HTTP_200_OK)
def logout():
    # tokens are dropped client side
    return {"message": "Logged out successfully"}


# --------------------------------------------------------
# PRODUCTS
# --------------------------------------------------------

def product_fields(request: schemas.Product):
    return {
        "name": request.name,
        "size": request.size,
        "color": request.color,
        "price": request.price,
        "purchase_price": request.purchase_price if request.purchase_price is not None else Decimal("0"),
        "quantity": request.quantity,
        "category": request.category,
        "subcategory": request.subcategory,
        "product_type": request.product_type or "ready-made",
    }


def scoped_products(db: Session, owner_id):
    return db.query(models.Product).filter(owner_filter(models.Product.user_id, owner_id))


@app.get('/api/products', response_model=List[schemas.ProductOut], status_code=status.HTTP_200_OK)
def fetch_products(owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    return scoped_products(db, owner_id).order_by(models.Product.id).all()


@app.get('/api/products/{product_id}', response_model=schemas.ProductOut, status_code=status.HTTP_200_OK)
def fetch_one_product(product_id: int, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    product = scoped_products(db, owner_id).filter(models.Product.id == product_id).first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


@app.post('/api/products', response_model=schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(request: schemas.Product, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    new_product = models.Product(user_id=owner_id, **product_fields(request))
    db.add(new_product)
    db.commit()
    db.refresh(new_product)
    return new_product


@app.put('/api/products/{product_id}', status_code=status.HTTP_200_OK)
def update_product(product_id: int, request: schemas.Product, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    fields = product_fields(request)
    # full replace; a product outside the caller's partition is left untouched
    scoped_products(db, owner_id).filter(models.Product.id == product_id).update(fields, synchronize_session=False)
    db.commit()
    return {"id": product_id, **fields}


@app.delete('/api/products/{product_id}', status_code=status.HTTP_200_OK)
def delete_product(product_id: int, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    scoped_products(db, owner_id).filter(models.Product.id == product_id).delete(synchronize_session=False)
    db.commit()
    return {"success": True}


# --------------------------------------------------------
# ORDERS / BILLING
# --------------------------------------------------------

@app.post('/api/orders', status_code=status.HTTP_201_CREATED)
def make_order(request: schemas.OrderCreate, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    return orders.create_order(db, request, owner_id)


@app.get('/api/orders', response_model=List[schemas.OrderOut], status_code=status.HTTP_200_OK)
def fetch_orders(owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    return orders.list_orders(db, owner_id)


@app.get('/api/orders/{order_id}', response_model=schemas.OrderDetailOut, status_code=status.HTTP_200_OK)
def fetch_order(order_id: int, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    return orders.get_order(db, order_id, owner_id)


# --------------------------------------------------------
# CUSTOMERS
# --------------------------------------------------------

def scoped_customers(db: Session, owner_id):
    return db.query(models.Customer).filter(owner_filter(models.Customer.user_id, owner_id))


def customer_fields(request: schemas.Customer):
    return {
        "name": request.name,
        "phone": request.phone,
        "address": request.address,
        "type": request.type,
        "dues": request.dues if request.dues is not None else Decimal("0"),
    }


@app.get('/api/customers', response_model=List[schemas.CustomerOut], status_code=status.HTTP_200_OK)
def fetch_customers(owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    return scoped_customers(db, owner_id).order_by(models.Customer.name.asc()).all()


@app.post('/api/customers', response_model=schemas.CustomerOut, status_code=status.HTTP_201_CREATED)
def add_customer(request: schemas.Customer, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    customer = models.Customer(user_id=owner_id, **customer_fields(request))
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@app.put('/api/customers/{customer_id}', status_code=status.HTTP_200_OK)
def update_customer(customer_id: int, request: schemas.Customer, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    # settling dues is a plain overwrite, orders never touch them
    fields = customer_fields(request)
    scoped_customers(db, owner_id).filter(models.Customer.id == customer_id).update(fields, synchronize_session=False)
    db.commit()
    return {"id": customer_id, **fields}


@app.delete('/api/customers/{customer_id}', status_code=status.HTTP_200_OK)
def delete_customer(customer_id: int, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    deleted = scoped_customers(db, owner_id).filter(models.Customer.id == customer_id).delete(synchronize_session=False)
    db.commit()
    if deleted == 0:
        raise NotFoundError("Customer not found")
    return {"success": True}


# --------------------------------------------------------
# PURCHASES
# --------------------------------------------------------

@app.post('/api/purchases', response_model=schemas.PurchaseOut, status_code=status.HTTP_201_CREATED)
def add_purchase(request: schemas.Purchase, owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    if not request.supplier_name or request.amount is None:
        raise ValidationError("Supplier name and amount are required")

    created_at = request.date or datetime.now()
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone().replace(tzinfo=None)

    purchase = models.Purchase(
        user_id=owner_id,
        supplier_name=request.supplier_name,
        company_name=request.company_name or None,
        invoice_number=request.invoice_number or None,
        amount=request.amount,
        notes=request.notes or None,
        has_bill_image=bool(request.has_bill_image),
        created_at=created_at,
    )
    db.add(purchase)
    db.commit()
    db.refresh(purchase)
    return purchase


@app.get('/api/purchases', response_model=List[schemas.PurchaseOut], status_code=status.HTTP_200_OK)
def fetch_purchases(owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    return (
        db.query(models.Purchase)
        .filter(owner_filter(models.Purchase.user_id, owner_id))
        .order_by(models.Purchase.created_at.desc(), models.Purchase.id.desc())
        .all()
    )


# --------------------------------------------------------
# DASHBOARD / REPORTS
# --------------------------------------------------------

@app.get('/api/dashboard/stats', response_model=schemas.DashboardStats, status_code=status.HTTP_200_OK)
def dashboard_stats(owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    return services.get_dashboard_stats(db, owner_id)


@app.get('/api/reports/sales-summary', response_model=List[schemas.SalesSummaryRow], status_code=status.HTTP_200_OK)
def sales_summary(owner_id: Optional[int] = Depends(get_owner_id), db: Session = Depends(database.get_db)):
    return services.get_sales_summary(db, owner_id)
