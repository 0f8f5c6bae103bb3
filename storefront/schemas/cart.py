from pydantic import BaseModel, Field
from typing import List, Optional

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(gt=0)
    image: Optional[str] = None
    quantity: int = Field(default=1, gt=0)

# Request schema naming a cart line by its item name
class CartItemRef(BaseModel):
    name: str = Field(min_length=1)

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    name: str
    price: float
    image: Optional[str] = None
    quantity: int
    line_total: float

    class Config:
        from_attributes = True

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    total: float
    item_count: int
