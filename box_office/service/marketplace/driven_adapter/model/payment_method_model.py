from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from box_office.platform.database.orm_db_setting import Base


class PaymentMethodModel(Base):
    __tablename__ = 'payment_method'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    gateway_account_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    holder_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last4: Mapped[str] = mapped_column(String(4), nullable=False)
    exp_month: Mapped[int] = mapped_column(Integer, nullable=False)
    exp_year: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)


class UserPaymentMethodModel(Base):
    __tablename__ = 'user_payment_method'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    payment_method_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('payment_method.id'), nullable=False
    )

    __table_args__ = (
        UniqueConstraint('user_id', 'payment_method_id', name='uq_user_payment_method'),
    )
