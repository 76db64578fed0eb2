""" Admin file of groups app """


from django.contrib import admin

from .models import ClassMember, GroupClass, GroupMember


class ClassMemberInline(admin.TabularInline):
    """Members placed in a class"""
    model = ClassMember
    extra = 0


class GroupClassAdmin(admin.ModelAdmin):
    list_display = ('id', 'group_id', 'name')
    search_fields = ('group_id', 'name')
    inlines = (ClassMemberInline,)


class GroupMemberAdmin(admin.ModelAdmin):
    list_display = ('group_id', 'user_id', 'name', 'role', 'modified')
    list_filter = ('role',)
    search_fields = ('group_id', 'user_id', 'name')


admin.site.register(GroupClass, GroupClassAdmin)
admin.site.register(GroupMember, GroupMemberAdmin)
