"""Display strings for the till, keyed by message id."""
from typing import Optional

DEFAULT_LANGUAGE = 'id'

TRANSLATIONS = {
    'id': {
        # General
        'appName': "Dyad POS",
        'saveChanges': "Simpan Perubahan",
        'cancel': "Batal",
        'delete': "Hapus",
        'actions': "Aksi",
        'edit': "Edit",
        'save': "Simpan",

        # Navigation
        'cashierInterface': "Antarmuka Kasir",
        'stockManagement': "Manajemen Stok",
        'cashier': "Kasir",
        'stock': "Inventaris",
        'orderHistory': "Riwayat Pesanan",
        'salesReports': "Laporan Penjualan",
        'settings': "Pengaturan",
        'categories': "Kategori",

        # Settings
        'storeIdentity': "Identitas Toko",
        'storeName': "Nama Toko",
        'storeLogoUrl': "URL Logo Toko",
        'storeAddress': "Alamat Toko",
        'storePhone': "Nomor Telepon",
        'receiptNotes': "Catatan di Struk",
        'updateIdentity': "Perbarui Identitas",
        'receiptSettings': "Pengaturan Struk",

        # Cashier
        'productSelection': "Pilihan Produk",
        'currentOrder': "Pesanan Saat Ini",
        'emptyCart': "Klik pada produk untuk menambahkannya ke keranjang.",
        'subtotal': "Subtotal:",
        'tax': "Pajak",
        'total': "Total:",
        'processPayment': "Proses Pembayaran",
        'taxIncludedToggle': "Harga termasuk Pajak (11%)",
        'tenderedAmount': "Uang Diterima",
        'change': "Kembalian",
        'allCategories': "Semua Kategori",
        'lowStock': "STOK TIPIS",

        # Receipt
        'receiptTitle': "Struk Pembayaran",
        'thankYou': "Terima kasih atas pembelian Anda!",
        'transactionId': "ID Transaksi",
        'totalPaid': "Total Dibayar",
        'printReceipt': "Cetak Struk",
        'tendered': "Diterima",
        'changeDue': "Kembalian",

        # Stock management
        'inventoryList': "Daftar Inventaris ({count} item)",
        'addNewProduct': "Tambah Produk Baru",
        'name': "Nama",
        'price': "Harga Jual",
        'purchasePrice': "Harga Beli",
        'stockQuantity': "Stok",
        'category': "Kategori",
        'noCategory': "Tanpa Kategori",

        # Categories
        'manageCategories': "Manajemen Kategori",
        'categoryName': "Nama Kategori",
        'addCategory': "Tambah Kategori",
        'confirmDeleteCategory': "Hapus kategori ini? Produk dengan kategori ini akan menjadi 'Tanpa Kategori'.",

        # Order history
        'date': "Tanggal",
        'itemsSold': "Item Terjual",
        'totalAmount': "Jumlah Total",
        'noOrdersYet': "Belum ada pesanan yang diproses.",

        # Sales reports
        'totalRevenue': "Total Pendapatan",
        'totalProfit': "Total Keuntungan",
        'totalTransactions': "Total Transaksi",
        'totalItemsSold': "Total Item Terjual",
        'basedOnTransactions': "Berdasarkan semua transaksi yang diproses",
        'profitDescription': "Selisih harga jual dan modal produk",
        'ordersProcessed': "Pesanan Diproses",
        'unitsSold': "Unit Terjual",
        'weeklySalesOverview': "Ringkasan Penjualan Mingguan",
        'sales': "Penjualan",

        # Notifications
        'confirmDeleteTitle': "Apakah Anda benar-benar yakin?",
        'confirmDeleteDescription': "Tindakan ini tidak dapat dibatalkan. Ini akan menghapus produk {productName} secara permanen dari inventaris.",
        'insufficientFunds': "Uang yang diterima ({tendered}) kurang dari total pembayaran ({total}).",
        'toastItemAdded': "Item ditambahkan ke keranjang.",
        'toastItemRemoved': "Item dihapus dari keranjang.",
        'toastItemUpdated': "Jumlah item diperbarui.",
        'toastProductNotFound': "Produk {productId} tidak ditemukan.",
        'toastCheckoutSuccess': "Checkout berhasil! Total: {total}",
        'toastCheckoutFailed': "Gagal memproses transaksi",
        'toastCartEmpty': "Keranjang kosong.",
        'toastStockLimit': "Tidak dapat menambahkan lebih dari {stock} {productName} ke keranjang.",
        'toastStockOnly': "Hanya {stock} yang tersedia di stok.",
        'toastProductUpdated': "Produk {productName} diperbarui.",
        'toastProductCreated': "Produk {productName} dibuat.",
        'toastProductDeleted': "Produk {productName} dihapus.",
        'toastProductCreateFailed': "Gagal membuat produk",
        'toastProductUpdateFailed': "Gagal memperbarui produk",
        'toastProductDeleteFailed': "Gagal menghapus produk",
        'toastCategoryCreated': "Kategori {categoryName} berhasil dibuat.",
        'toastCategoryUpdated': "Kategori berhasil diperbarui.",
        'toastCategoryDeleted': "Kategori berhasil dihapus.",
        'toastCategoryCreateFailed': "Gagal membuat kategori",
        'toastCategoryUpdateFailed': "Gagal memperbarui kategori",
        'toastCategoryDeleteFailed': "Gagal menghapus kategori",
        'toastStoreUpdated': "Identitas toko berhasil diperbarui.",
        'toastStoreUpdateFailed': "Gagal menyimpan pengaturan",
        'toastLoginRequired': "Silakan masuk terlebih dahulu.",
        'toastInvalidQuantity': "Jumlah harus lebih dari 0.",
    },
    'en': {
        'appName': "Dyad POS",
        'saveChanges': "Save Changes",
        'cancel': "Cancel",
        'delete': "Delete",
        'actions': "Actions",
        'edit': "Edit",
        'save': "Save",

        'cashierInterface': "Cashier Interface",
        'stockManagement': "Stock Management",
        'cashier': "Cashier",
        'stock': "Inventory",
        'orderHistory': "Order History",
        'salesReports': "Sales Reports",
        'settings': "Settings",
        'categories': "Categories",

        'storeIdentity': "Store Identity",
        'storeName': "Store Name",
        'storeLogoUrl': "Store Logo URL",
        'storeAddress': "Store Address",
        'storePhone': "Phone Number",
        'receiptNotes': "Receipt Notes",
        'updateIdentity': "Update Identity",
        'receiptSettings': "Receipt Settings",

        'productSelection': "Product Selection",
        'currentOrder': "Current Order",
        'emptyCart': "Click a product to add it to the cart.",
        'subtotal': "Subtotal:",
        'tax': "Tax",
        'total': "Total:",
        'processPayment': "Process Payment",
        'taxIncludedToggle': "Prices include Tax (11%)",
        'tenderedAmount': "Amount Tendered",
        'change': "Change",
        'allCategories': "All Categories",
        'lowStock': "LOW STOCK",

        'receiptTitle': "Payment Receipt",
        'thankYou': "Thank you for your purchase!",
        'transactionId': "Transaction ID",
        'totalPaid': "Total Paid",
        'printReceipt': "Print Receipt",
        'tendered': "Tendered",
        'changeDue': "Change",

        'inventoryList': "Inventory List ({count} items)",
        'addNewProduct': "Add New Product",
        'name': "Name",
        'price': "Selling Price",
        'purchasePrice': "Purchase Price",
        'stockQuantity': "Stock",
        'category': "Category",
        'noCategory': "Uncategorized",

        'manageCategories': "Manage Categories",
        'categoryName': "Category Name",
        'addCategory': "Add Category",
        'confirmDeleteCategory': "Delete this category? Products in it will become 'Uncategorized'.",

        'date': "Date",
        'itemsSold': "Items Sold",
        'totalAmount': "Total Amount",
        'noOrdersYet': "No orders processed yet.",

        'totalRevenue': "Total Revenue",
        'totalProfit': "Total Profit",
        'totalTransactions': "Total Transactions",
        'totalItemsSold': "Total Items Sold",
        'basedOnTransactions': "Based on all processed transactions",
        'profitDescription': "Difference between selling price and product cost",
        'ordersProcessed': "Orders Processed",
        'unitsSold': "Units Sold",
        'weeklySalesOverview': "Weekly Sales Overview",
        'sales': "Sales",

        'confirmDeleteTitle': "Are you absolutely sure?",
        'confirmDeleteDescription': "This action cannot be undone. It will permanently remove {productName} from the inventory.",
        'insufficientFunds': "Amount tendered ({tendered}) is less than the total ({total}).",
        'toastItemAdded': "Item added to cart.",
        'toastItemRemoved': "Item removed from cart.",
        'toastItemUpdated': "Item quantity updated.",
        'toastProductNotFound': "Product {productId} not found.",
        'toastCheckoutSuccess': "Checkout successful! Total: {total}",
        'toastCheckoutFailed': "Failed to process the transaction",
        'toastCartEmpty': "Cart is empty.",
        'toastStockLimit': "Cannot add more than {stock} {productName} to the cart.",
        'toastStockOnly': "Only {stock} available in stock.",
        'toastProductUpdated': "Product {productName} updated.",
        'toastProductCreated': "Product {productName} created.",
        'toastProductDeleted': "Product {productName} deleted.",
        'toastProductCreateFailed': "Failed to create product",
        'toastProductUpdateFailed': "Failed to update product",
        'toastProductDeleteFailed': "Failed to delete product",
        'toastCategoryCreated': "Category {categoryName} created.",
        'toastCategoryUpdated': "Category updated.",
        'toastCategoryDeleted': "Category deleted.",
        'toastCategoryCreateFailed': "Failed to create category",
        'toastCategoryUpdateFailed': "Failed to update category",
        'toastCategoryDeleteFailed': "Failed to delete category",
        'toastStoreUpdated': "Store identity updated.",
        'toastStoreUpdateFailed': "Failed to save settings",
        'toastLoginRequired': "Please sign in first.",
        'toastInvalidQuantity': "Quantity must be greater than 0.",
    },
}


def translate(key: str, language: Optional[str] = None, **replacements) -> str:
    """
    Look up a display string and fill its placeholders.

    Unknown keys come back unchanged so a missing entry is visible on screen
    instead of failing. Each ``{name}`` placeholder is replaced once.

    Examples:
        translate('toastCheckoutSuccess', total='Rp7.770')
            -> "Checkout berhasil! Total: Rp7.770"
        translate('missingKey') -> "missingKey"
    """
    table = TRANSLATIONS.get(language or DEFAULT_LANGUAGE, TRANSLATIONS[DEFAULT_LANGUAGE])
    text = table.get(key) or key
    for placeholder, value in replacements.items():
        text = text.replace('{' + placeholder + '}', str(value), 1)
    return text


class Translator:
    """Callable bound to one language, handed to the till store."""

    def __init__(self, language: Optional[str] = None):
        if language not in TRANSLATIONS:
            language = DEFAULT_LANGUAGE
        self.language = language

    def __call__(self, key: str, **replacements) -> str:
        return translate(key, self.language, **replacements)
