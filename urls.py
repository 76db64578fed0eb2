from django.contrib import admin
from django.urls import include, path
from django.urls import re_path

import academy.urls

urlpatterns = [
    # Django built-in
    re_path(r'^admin/', admin.site.urls),

    # academy apps
    path('api/', include(academy.urls)),
]
