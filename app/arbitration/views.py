"""
DRF views for arbitration app.

Endpoints:
    GET  /api/v1/arbitration/                 - Cases visible to the caller
    POST /api/v1/arbitration/                 - Open a case
    GET  /api/v1/arbitration/{id}/            - Case detail
    POST /api/v1/arbitration/{id}/assign/     - Assign an arbitrator
    POST /api/v1/arbitration/{id}/decision/   - Submit the ruling
    POST /api/v1/arbitration/{id}/rate/       - Rate the arbitrator

Security:
    - All endpoints require authentication
    - Role and party checks happen in ArbitrationService
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from arbitration.serializers import (
    ArbitrationCreateSerializer,
    ArbitrationSerializer,
    AssignArbitratorSerializer,
    DecisionOutcomeSerializer,
    DecisionSerializer,
    RatingCreateSerializer,
    RatingSerializer,
)
from arbitration.services import ArbitrationService
from core.views import failure_response


@extend_schema_view(
    get=extend_schema(
        operation_id="list_arbitrations",
        summary="List arbitration cases",
        tags=["Arbitration"],
    ),
)
class ArbitrationListCreateView(generics.ListAPIView):
    """
    Cases visible to the caller, filterable by ?status=.

    POST opens a new case for one of the caller's projects.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ArbitrationSerializer

    def get_queryset(self):
        queryset = ArbitrationService.cases_for(self.request.user)
        case_status = self.request.query_params.get("status")
        if case_status:
            queryset = queryset.filter(status=case_status)
        return queryset

    @extend_schema(
        operation_id="open_arbitration",
        summary="Open an arbitration case",
        request=ArbitrationCreateSerializer,
        responses={
            201: ArbitrationSerializer,
            403: OpenApiResponse(description="Caller is not a project party"),
            409: OpenApiResponse(description="Project already has an open case"),
        },
        tags=["Arbitration"],
    )
    def post(self, request):
        serializer = ArbitrationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ArbitrationService.open_case(
            request.user,
            serializer.validated_data["project_id"],
            serializer.validated_data["reason"],
        )
        if not result.success:
            return failure_response(result)

        return Response(ArbitrationSerializer(result.data).data, status=status.HTTP_201_CREATED)


@extend_schema(
    operation_id="get_arbitration",
    summary="Get arbitration case",
    tags=["Arbitration"],
)
class ArbitrationDetailView(generics.RetrieveAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ArbitrationSerializer

    def get_queryset(self):
        return ArbitrationService.cases_for(self.request.user)


class AssignArbitratorView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="assign_arbitrator",
        summary="Assign an arbitrator",
        request=AssignArbitratorSerializer,
        responses={
            200: ArbitrationSerializer,
            403: OpenApiResponse(description="Caller may not assign this case"),
            409: OpenApiResponse(description="Case already assigned"),
        },
        tags=["Arbitration"],
    )
    def post(self, request, pk):
        serializer = AssignArbitratorSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ArbitrationService.assign_arbitrator(
            pk, request.user, serializer.validated_data.get("arbitrator_id")
        )
        if not result.success:
            return failure_response(result)

        return Response(ArbitrationSerializer(result.data).data)


class DecisionView(APIView):
    """
    Submit the ruling for an assigned case.

    POST /api/v1/arbitration/{id}/decision/

    Settles every held escrow of the project and completes it.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="submit_arbitration_decision",
        summary="Submit arbitration decision",
        request=DecisionSerializer,
        responses={
            200: DecisionOutcomeSerializer,
            400: OpenApiResponse(description="Invalid decision input"),
            403: OpenApiResponse(description="Case not assigned to caller"),
            409: OpenApiResponse(description="Case is not in assigned state"),
        },
        tags=["Arbitration"],
    )
    def post(self, request, pk):
        serializer = DecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ArbitrationService.submit_decision(
            pk,
            request.user,
            serializer.validated_data["decision"],
            contractor_percentage=serializer.validated_data.get("contractor_percentage"),
            resolution=serializer.validated_data["resolution"],
        )
        if not result.success:
            return failure_response(result)

        return Response(DecisionOutcomeSerializer(result.data).data)


class RateArbitratorView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="rate_arbitrator",
        summary="Rate the arbitrator of a resolved case",
        request=RatingCreateSerializer,
        responses={
            201: RatingSerializer,
            403: OpenApiResponse(description="Caller is not a party"),
            409: OpenApiResponse(description="Case not resolved or already rated"),
        },
        tags=["Arbitration"],
    )
    def post(self, request, pk):
        serializer = RatingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ArbitrationService.rate_arbitrator(
            pk,
            request.user,
            serializer.validated_data["rating"],
            serializer.validated_data.get("feedback", ""),
        )
        if not result.success:
            return failure_response(result)

        return Response(RatingSerializer(result.data).data, status=status.HTTP_201_CREATED)
