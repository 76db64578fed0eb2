""" Admin file of reports app """


from django.contrib import admin

from .models import Report, ReportHistory, SupervisionMapping


class ReportHistoryInline(admin.TabularInline):
    """History rows are append-only, so they are shown read only."""
    model = ReportHistory
    extra = 0
    can_delete = False
    readonly_fields = ('action', 'performed_by', 'from_stage', 'to_stage', 'details', 'created_at')

    def has_add_permission(self, request, obj=None):
        return False


class ReportAdmin(admin.ModelAdmin):
    """Admin for reports.

    Like workflows, reports may be edited here so that staff can move a
    stuck report by hand.  Such edits are not recorded in the history.
    """
    list_display = (
        'id', 'form', 'student_id', 'student_name', 'class_name', 'stage', 'stage_changed', 'rejected_at'
    )
    list_filter = ('stage',)
    search_fields = ('student_id', 'student_name', 'class_name', 'time_teacher_id', 'teacher_id')
    inlines = (ReportHistoryInline,)


class SupervisionMappingAdmin(admin.ModelAdmin):
    list_display = ('id', 'group_id', 'time_teacher_id', 'teacher_id', 'created')
    search_fields = ('group_id', 'time_teacher_id', 'teacher_id')


admin.site.register(Report, ReportAdmin)
admin.site.register(SupervisionMapping, SupervisionMappingAdmin)
