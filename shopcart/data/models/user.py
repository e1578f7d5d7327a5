from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from shopcart.data.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    #optimistic lock for the whole cart document
    cart_version = Column(Integer, nullable=False, default=1)

    cart_items = relationship(
        "CartItemModel",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )
