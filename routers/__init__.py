from routers import admin, auth, blogs, categories, homepage, orders, products, services

all_routers = [
    auth.router,
    homepage.router,
    products.router,
    blogs.router,
    services.router,
    orders.router,
    admin.router,
    categories.router,
]
