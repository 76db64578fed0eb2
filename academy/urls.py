"""
Urls for the academy workflow API.
"""

from django.urls import path

from academy import views

urlpatterns = [
    path('groups/<str:group_id>/forms/', views.GroupFormsView.as_view(), name='group_forms'),
    path('groups/<str:group_id>/concept-templates/', views.GroupConceptTemplatesView.as_view(),
         name='group_concept_templates'),
    path('groups/<str:group_id>/reports/', views.GroupReportsView.as_view(), name='group_reports'),
    path('groups/<str:group_id>/reports/mine/', views.MyReportsView.as_view(), name='my_reports'),
    path('groups/<str:group_id>/reports/queue/', views.ReviewQueueView.as_view(), name='review_queue'),
    path('groups/<str:group_id>/statistics/', views.GroupStatisticsView.as_view(), name='group_statistics'),

    path('forms/<int:form_id>/', views.FormDetailView.as_view(), name='form_detail'),
    path('forms/<int:form_id>/questions/', views.FormQuestionsView.as_view(), name='form_questions'),
    path('forms/<int:form_id>/questions/move/', views.QuestionMoveView.as_view(), name='question_move'),
    path('forms/<int:form_id>/questions/<int:question_id>/', views.QuestionDetailView.as_view(),
         name='question_detail'),
    path('forms/<int:form_id>/send/', views.FormSendView.as_view(), name='form_send'),
    path('forms/<int:form_id>/duplicate/', views.FormDuplicateView.as_view(), name='form_duplicate'),
    path('forms/<int:form_id>/responses/', views.FormResponseView.as_view(), name='form_responses'),
    path('forms/<int:form_id>/statistics/', views.FormStatisticsView.as_view(), name='form_statistics'),

    path('concept-templates/<int:template_id>/', views.ConceptTemplateDetailView.as_view(),
         name='concept_template_detail'),
    path('concept-templates/<int:template_id>/duplicate/', views.ConceptTemplateDuplicateView.as_view(),
         name='concept_template_duplicate'),

    path('reports/<int:report_id>/', views.ReportDetailView.as_view(), name='report_detail'),
    path('reports/<int:report_id>/history/', views.ReportHistoryView.as_view(), name='report_history'),
    path('reports/<int:report_id>/comment/', views.ReportCommentView.as_view(), name='report_comment'),
    path('reports/<int:report_id>/complete/', views.ReportCompleteView.as_view(), name='report_complete'),
    path('reports/<int:report_id>/reject/', views.ReportRejectView.as_view(), name='report_reject'),
    path('reports/<int:report_id>/reset/', views.ReportResetView.as_view(), name='report_reset'),
]
