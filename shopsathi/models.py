from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from shopsathi.database import Base


class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    password = Column(String(255), nullable=False)
    shop_name = Column(String(255), default='My Shop')
    created_at = Column(DateTime, default=func.now())
    products = relationship("Product", back_populates='user', cascade="all, delete-orphan", passive_deletes=True)
    customers = relationship("Customer", back_populates='user', cascade="all, delete-orphan", passive_deletes=True)
    orders = relationship("Order", back_populates='user', cascade="all, delete-orphan", passive_deletes=True)
    purchases = relationship("Purchase", back_populates='user', cascade="all, delete-orphan", passive_deletes=True)


class Product(Base):
    __tablename__ = 'products'
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    size = Column(String(100))
    color = Column(String(100))
    price = Column(Numeric(10, 2), nullable=False)
    purchase_price = Column(Numeric(10, 2), default=0)
    # not constrained to >= 0: sales decrement blindly
    quantity = Column(Integer, nullable=False, default=0)
    category = Column(String(255))
    subcategory = Column(String(255))
    product_type = Column(String(50), default='ready-made')
    user = relationship("User", back_populates='products')


class Customer(Base):
    __tablename__ = 'customers'
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50))
    address = Column(Text)
    type = Column(String(100))
    dues = Column(Numeric(10, 2), default=0)
    user = relationship("User", back_populates='customers')


class Order(Base):
    __tablename__ = 'orders'
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=True, index=True)
    # free text, deliberately not a reference to customers
    customer_name = Column(String(255))
    total_amount = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    final_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, nullable=False)
    user = relationship("User", back_populates='orders')
    items = relationship("OrderItem", back_populates='order', cascade="all, delete-orphan",
                         passive_deletes=True, order_by="OrderItem.id")


class OrderItem(Base):
    __tablename__ = 'order_items'
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(Integer)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    order = relationship("Order", back_populates='items')


class Purchase(Base):
    __tablename__ = 'purchases'
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=True, index=True)
    supplier_name = Column(String(255), nullable=False)
    company_name = Column(String(255))
    invoice_number = Column(String(100))
    amount = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text)
    has_bill_image = Column(Boolean, default=False)
    created_at = Column(DateTime, nullable=False)
    user = relationship("User", back_populates='purchases')
