"""Shared key lists, tax constants and export layouts for the invoice console."""

GST_RATE = 0.18

CURRENCY_SYMBOL = "₹"

PAID_STATUSES = ("unpaid", "partial", "paid")
PAID_STATUS_ALIASES = {
    "paid": "paid",
    "complete": "paid",
    "completed": "paid",
    "success": "paid",
    "settled": "paid",
    "partial": "partial",
    "partially_paid": "partial",
    "partially paid": "partial",
    "part_paid": "partial",
    "unpaid": "unpaid",
    "pending": "unpaid",
    "due": "unpaid",
}

PAYMENT_TYPES = ("cash", "card", "upi", "bank_transfer")

# ---------- invoice field candidates (first match wins) ----------
ID_KEYS = ["id", "_id", "invoice_id", "invoiceId", "uuid"]
INVOICE_NO_KEYS = [
    "invoice_no",
    "invoice_number",
    "invoiceNo",
    "invoiceNumber",
    "number",
    "order_no",
    "order_number",
    "order_id",
]
DATE_KEYS = ["date", "invoice_date", "invoiceDate", "issue_date", "order_date", "created_at"]
CREATED_AT_KEYS = ["created_at", "createdAt", "inserted_at", "date_created"]

# Nested blocks are consulted only after the flat keys of the record itself.
# Each entry maps a canonical field to (flat keys, keys inside the block).
CUSTOMER_BLOCK_KEYS = ["customer", "customer_details", "customerDetails", "billing", "billing_address"]
CUSTOMER_FIELDS = {
    "customer_name": (["customer_name", "customerName"], ["name", "full_name", "fullName", "customer_name"]),
    "customer_phone": (
        ["customer_phone", "customerPhone", "phone", "mobile"],
        ["phone", "mobile", "phone_number", "contact", "customer_phone"],
    ),
    "customer_email": (["customer_email", "customerEmail", "email"], ["email", "customer_email"]),
    "customer_address": (["customer_address", "customerAddress"], ["address", "customer_address"]),
}
ADDRESS_PART_KEYS = ["line1", "address1", "street", "line2", "address2", "city", "state", "pincode", "zip"]

GST_FLAG_KEYS = ["gst", "is_gst", "gst_invoice", "gstEnabled", "gst_enabled"]
PO_FLAG_KEYS = ["po", "is_po", "purchase_order", "poEnabled"]
QUOTATION_FLAG_KEYS = ["quotation", "is_quotation", "quote"]

GST_BLOCK_KEYS = ["gst_details", "gstDetails", "gst"]
GST_FIELDS = {
    "gst_name": (["gst_name", "gstName"], ["name", "business_name", "legal_name", "gst_name"]),
    "gst_no": (["gst_no", "gstNo", "gstin", "gst_number", "gstNumber"], ["gstin", "gst_no", "number"]),
    "gst_phone": (["gst_phone", "gstPhone"], ["phone", "gst_phone"]),
    "gst_email": (["gst_email", "gstEmail"], ["email", "gst_email"]),
    "gst_address": (["gst_address", "gstAddress"], ["address", "gst_address"]),
}

DELIVERY_BLOCK_KEYS = ["transport", "delivery", "shipping", "delivery_details"]
DELIVERY_FIELDS = {
    "delivered_by": (
        ["delivered_by", "deliveredBy", "delivery_person", "driver_name", "transporter"],
        ["name", "delivered_by", "driver_name", "person"],
    ),
    "delivery_date": (
        ["delivery_date", "deliveryDate", "delivered_at", "dispatch_date"],
        ["date", "delivery_date", "delivered_at"],
    ),
}

PAID_STATUS_KEYS = ["paid_status", "paidStatus", "payment_status", "paymentStatus", "status"]
PAYMENT_TYPE_KEYS = ["payment_type", "paymentType", "payment_method", "paymentMethod", "payment_mode"]
ONLINE_USER_KEYS = ["aquakart_online_user", "online_user", "onlineUser"]
ONLINE_INVOICE_KEYS = ["aquakart_invoice", "online_invoice", "onlineInvoice"]
TOTAL_KEYS = ["total_amount", "total", "grand_total", "amount"]

# ---------- product line candidates ----------
PRODUCT_ARRAY_KEYS = ["products", "items", "invoice_items", "invoiceItems", "order_items", "orderItems"]
PRODUCT_NAME_KEYS = ["productName", "product_name", "name", "title", "item_name", "description"]
PRODUCT_QUANTITY_KEYS = ["productQuantity", "product_quantity", "quantity", "qty", "count"]
PRODUCT_PRICE_KEYS = [
    "productPrice",
    "product_price",
    "price",
    "unit_price",
    "unitPrice",
    "rate",
    "selling_price",
    "sale_price",
]
PRODUCT_LINE_TOTAL_KEYS = ["total", "total_price"]
PRODUCT_SERIAL_KEYS = ["productSerialNo", "product_serial_no", "serial_no", "serialNo", "serial_number", "sn"]
DEFAULT_PRODUCT_NAME = "Product"

# ---------- catalog (product picker) candidates ----------
CATALOG_LIST_PATHS = [
    ("data", "products"),
    ("data", "data"),
    ("data",),
    ("products",),
    (),
]
CATALOG_ID_KEYS = ["id", "_id", "product_id", "sku"]
CATALOG_NAME_KEYS = ["name", "title", "product_name", "productName"]
CATALOG_PRICE_KEYS = ["price", "selling_price", "salePrice", "mrp", "unit_price"]
CATALOG_DISCOUNT_FLAG_KEYS = ["discountPriceStatus", "discount_price_status"]
CATALOG_DISCOUNT_PRICE_KEYS = ["discountPrice", "discount_price"]
CATALOG_DP_PRICE_KEYS = ["dpPrice", "dp_price", "dealer_price"]
CATALOG_SKU_KEYS = ["sku", "sku_code", "skuCode", "code"]

# ---------- batch envelopes ----------
BATCH_LIST_KEYS = ["data", "invoices", "orders", "results"]

# ---------- exports ----------
GENERAL_CSV_FILENAME = "invoices.csv"
SALES_CSV_FILENAME = "sales_invoices.csv"
PRINT_HTML_FILENAME = "invoices.html"
PRINT_PDF_FILENAME = "invoices.pdf"
INVOICE_DOCUMENT_PREFIX = "invoice_"

GENERAL_CSV_HEADER = [
    "Invoice No",
    "Date",
    "Customer",
    "Phone",
    "Email",
    "Address",
    "GST",
    "PO",
    "Quotation",
    "Payment Type",
    "Delivery Date",
    "Delivered By",
    "Base Price",
    "GST Amount",
    "Total",
    "Status",
]

SALES_CSV_HEADER = [
    "Invoice No",
    "Date",
    "Customer",
    "GST",
    "GST Number",
    "GST Name",
    "Base Price",
    "GST Amount",
    "Total",
]

PRINT_HEADER = [
    "Invoice No",
    "Date",
    "Customer",
    "Phone",
    "GST",
    "Base Price",
    "GST Amount",
    "Total",
    "Status",
]

INVOICE_LINE_HEADER = [
    "#",
    "Product",
    "Serial No",
    "Qty",
    "Unit Price",
    "Base",
    "GST",
    "Line Total",
]

NO_INVOICES_TO_EXPORT = "No invoices to export"

# ---------- draft ----------
DRAFT_STORAGE_KEY = "invoice_form_draft"
SUBMIT_REQUIRED_FIELDS = [
    "invoice_no",
    "date",
    "customer_name",
    "customer_phone",
    "customer_address",
]
IMPORT_REQUIRED_FIELDS = ["invoice_no", "customer_name", "customer_phone"]
