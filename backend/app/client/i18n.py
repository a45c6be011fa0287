"""UI strings in English and Simplified Chinese."""
from typing import Dict

from app.utils.logger import logger

LANGUAGES = ("en", "zh")
DEFAULT_LANGUAGE = "en"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    # Navbar and common elements
    "search": {"en": "Search for services...", "zh": "搜索服务..."},
    "categories": {"en": "Categories", "zh": "分类"},
    "popular": {"en": "Popular", "zh": "热门"},
    "new": {"en": "New", "zh": "最新"},
    "featured": {"en": "Featured Services", "zh": "特色服务"},
    "topRated": {"en": "Top Rated", "zh": "最高评分"},
    "login": {"en": "Login", "zh": "登录"},
    "register": {"en": "Register", "zh": "注册"},
    "logout": {"en": "Logout", "zh": "退出登录"},
    "cart": {"en": "Cart", "zh": "购物车"},
    "vendors": {"en": "Vendors", "zh": "商家"},
    "viewAll": {"en": "View All", "zh": "查看全部"},
    "welcome": {"en": "Welcome to Cimplico Marketplace", "zh": "欢迎来到Cimplico商城"},
    "tagline": {"en": "Professional services at your fingertips", "zh": "专业服务触手可及"},
    "becomeVendor": {"en": "Become a Vendor", "zh": "成为商家"},
    "browseCategories": {"en": "Browse Categories", "zh": "浏览分类"},
    # Categories
    "accountServices": {"en": "Accounting Services", "zh": "会计服务"},
    "consultingServices": {"en": "Consulting Services", "zh": "咨询服务"},
    "taxServices": {"en": "Tax Services", "zh": "税务服务"},
    "businessServices": {"en": "Business Services", "zh": "商业服务"},
    "techServices": {"en": "Tech Services", "zh": "技术服务"},
    # Auth
    "signIn": {"en": "Sign In", "zh": "登录"},
    "signUp": {"en": "Sign Up", "zh": "注册"},
    "email": {"en": "Email", "zh": "电子邮箱"},
    "password": {"en": "Password", "zh": "密码"},
    "firstName": {"en": "First Name", "zh": "名字"},
    "lastName": {"en": "Last Name", "zh": "姓氏"},
    "createAccount": {"en": "Create account", "zh": "创建账户"},
    "loginRequired": {"en": "Login required", "zh": "需要登录"},
    # Vendor onboarding
    "vendorRegisterTitle": {"en": "Register as a Vendor", "zh": "注册成为商家"},
    "companyName": {"en": "Company Name", "zh": "公司名称"},
    "businessNumber": {"en": "Business Number", "zh": "营业执照号"},
    "website": {"en": "Website", "zh": "网站"},
    "description": {"en": "Description", "zh": "描述"},
    "submitApplication": {"en": "Submit Application", "zh": "提交申请"},
    "vendorDashboard": {"en": "Vendor Dashboard", "zh": "商家后台"},
    "myListings": {"en": "My Listings", "zh": "我的商品"},
    "newListing": {"en": "New Listing", "zh": "新增商品"},
    "pendingApproval": {"en": "Pending Approval", "zh": "等待审核"},
    # Cart and checkout
    "cartEmpty": {"en": "Your cart is empty", "zh": "购物车为空"},
    "continueShopping": {"en": "Continue Shopping", "zh": "继续购物"},
    "checkout": {"en": "Checkout", "zh": "结算"},
    "total": {"en": "Total", "zh": "总计"},
    "remove": {"en": "Remove", "zh": "移除"},
    "quantity": {"en": "Quantity", "zh": "数量"},
    "addedToCart": {"en": "Added to Cart", "zh": "已添加到购物车"},
    "removedFromCart": {"en": "Removed from Cart", "zh": "已从购物车移除"},
    "cartCleared": {"en": "Cart Cleared", "zh": "购物车已清空"},
    # Profile and favorites
    "myProfile": {"en": "My Profile", "zh": "我的资料"},
    "myOrders": {"en": "My Orders", "zh": "我的订单"},
    "myFavorites": {"en": "My Favorites", "zh": "我的收藏"},
    "addedToFavorites": {"en": "Added to Favorites", "zh": "已添加到收藏"},
    "removedFromFavorites": {"en": "Removed from Favorites", "zh": "已从收藏移除"},
    # Admin dashboard
    "adminDashboard": {"en": "Admin Dashboard", "zh": "管理员后台"},
    "pendingVendors": {"en": "Pending Vendors", "zh": "待审核商家"},
    "pendingListings": {"en": "Pending Listings", "zh": "待审核商品"},
    "approve": {"en": "Approve", "zh": "批准"},
    "reject": {"en": "Reject", "zh": "拒绝"},
    "rejectionReason": {"en": "Rejection Reason", "zh": "拒绝原因"},
    "error": {"en": "Error", "zh": "错误"},
}


def translate(key: str, language: str) -> str:
    entry = TRANSLATIONS.get(key)
    if entry is None:
        logger.debug(f"Translation key not found: {key}")
        return key
    return entry.get(language) or entry.get(DEFAULT_LANGUAGE) or key
