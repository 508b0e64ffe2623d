from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class CatalogItem(db.Model):
    """Semiproduct or finished product as mirrored from the ERP catalog."""
    __tablename__ = 'catalog_item'

    TYPE_SEMIPRODUCT = 'semiproduct'
    TYPE_PRODUCT = 'product'

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(50), nullable=False, unique=True)
    product_name = db.Column(db.String(200), nullable=False)
    product_type = db.Column(db.String(20), nullable=False, default=TYPE_PRODUCT)
    size_code = db.Column(db.String(20))
    stock_total = db.Column(db.Numeric(18, 4, asdecimal=False), nullable=False, default=0)
    # Semiproduct consumed per produced unit (grams)
    net_weight = db.Column(db.Numeric(18, 4, asdecimal=False))
    minimal_manufacture_quantity = db.Column(db.Numeric(18, 4, asdecimal=False), nullable=False, default=0)
    expiration_months = db.Column(db.Integer)
    allowed_residue_percentage = db.Column(db.Numeric(9, 4, asdecimal=False))
    updated_at = db.Column(db.DateTime, default=TimezoneUtils.utc_now, onupdate=TimezoneUtils.utc_now)

    __table_args__ = (
        db.Index('ix_catalog_item_type', 'product_type'),
    )

    def __repr__(self):
        return f'<CatalogItem {self.product_code} | {self.product_type}>'


class CatalogSale(db.Model):
    """Units of a product sold on one day."""
    __tablename__ = 'catalog_sale'

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(50), nullable=False)
    sold_on = db.Column(db.Date, nullable=False)
    quantity = db.Column(db.Numeric(18, 4, asdecimal=False), nullable=False, default=0)

    __table_args__ = (
        db.Index('ix_catalog_sale_product_date', 'product_code', 'sold_on'),
    )

    def __repr__(self):
        return f'<CatalogSale {self.product_code} {self.sold_on} x{self.quantity}>'


class ManufactureTemplate(db.Model):
    """Recipe of a product: the ingredients needed for one batch of ``batch_size``."""
    __tablename__ = 'manufacture_template'

    id = db.Column(db.Integer, primary_key=True)
    product_code = db.Column(db.String(50), nullable=False, unique=True)
    product_name = db.Column(db.String(200), nullable=False)
    batch_size = db.Column(db.Numeric(18, 4, asdecimal=False), nullable=False)
    original_amount = db.Column(db.Numeric(18, 4, asdecimal=False))

    ingredients = db.relationship(
        'ManufactureTemplateIngredient',
        backref='template',
        cascade='all, delete-orphan',
        order_by='ManufactureTemplateIngredient.id',
    )

    def __repr__(self):
        return f'<ManufactureTemplate {self.product_code} batch={self.batch_size}>'


class ManufactureTemplateIngredient(db.Model):
    __tablename__ = 'manufacture_template_ingredient'

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, db.ForeignKey('manufacture_template.id'), nullable=False)
    product_code = db.Column(db.String(50), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    amount = db.Column(db.Numeric(18, 4, asdecimal=False), nullable=False)
    price = db.Column(db.Numeric(18, 4, asdecimal=False))

    __table_args__ = (
        db.Index('ix_template_ingredient_code', 'product_code'),
    )

    def __repr__(self):
        return f'<ManufactureTemplateIngredient {self.product_code} x{self.amount}>'
