""" Admin file of forms app """


from django.contrib import admin

from .models import ConceptTemplate, ConceptTemplateItem, Form, FormResponse, FormTarget, Question


class QuestionInline(admin.StackedInline):
    """Questions of a form, in order.  Read only once the form is sent."""
    model = Question
    extra = 0

    def has_add_permission(self, request, obj=None):
        return (obj is None or not obj.is_sent) and super().has_add_permission(request, obj)

    def has_change_permission(self, request, obj=None):
        return (obj is None or not obj.is_sent) and super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        return (obj is None or not obj.is_sent) and super().has_delete_permission(request, obj)


class FormTargetInline(admin.TabularInline):
    model = FormTarget
    extra = 0


class FormAdmin(admin.ModelAdmin):
    """Admin for forms."""
    list_display = ('id', 'title', 'group_id', 'creator_id', 'status', 'sent_at', 'created')
    list_filter = ('status',)
    search_fields = ('title', 'group_id', 'creator_id')
    inlines = (QuestionInline, FormTargetInline)


class ConceptTemplateItemInline(admin.TabularInline):
    model = ConceptTemplateItem
    extra = 0


class ConceptTemplateAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'group_id', 'concept_count', 'status', 'created')
    list_filter = ('status',)
    search_fields = ('name', 'group_id')
    inlines = (ConceptTemplateItemInline,)


class FormResponseAdmin(admin.ModelAdmin):
    list_display = ('id', 'form', 'student_id', 'submitted_at')
    search_fields = ('student_id',)
    readonly_fields = ('form', 'student_id', 'answers', 'submitted_at')


admin.site.register(Form, FormAdmin)
admin.site.register(ConceptTemplate, ConceptTemplateAdmin)
admin.site.register(FormResponse, FormResponseAdmin)
